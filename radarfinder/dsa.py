"""
Small algorithm helpers
=======================

Primitives used by the search index and the facet chain:

- Intersection of two sorted position lists (two-pointer technique)
- Intersection of many sorted lists (smallest first, stops early when empty)
- Merge Sort (stable, O(n log n)) for the country choice list
"""

from __future__ import annotations
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

def intersect_sorted(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """Two-pointer intersection for sorted integer lists."""
    # i and j are pointers into each sorted list
    i = j = 0
    out: List[int] = []
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            out.append(a[i]); i += 1; j += 1
        elif a[i] < b[j]:
            i += 1
        else:
            j += 1
    return out

def intersect_many(lists: Sequence[Sequence[int]]) -> List[int]:
    """AND together any number of sorted position lists.

    The result is sorted, so it follows the original record order.
    """
    if not lists:
        return []
    ordered = sorted(lists, key=len)
    out = list(ordered[0])
    for other in ordered[1:]:
        if not out:
            break
        out = intersect_sorted(out, other)
    return out

def merge_sort(arr: List[T], key: Callable[[T], object] = lambda x: x) -> List[T]:
    """Stable merge sort."""
    if len(arr) <= 1:
        return arr[:]
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key)
    right = merge_sort(arr[mid:], key=key)
    return _merge(left, right, key=key)

def _merge(left: List[T], right: List[T], key: Callable[[T], object]) -> List[T]:
    out: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        # <= keeps equal keys in their original order
        if key(left[i]) <= key(right[j]):
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out
