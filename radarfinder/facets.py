"""
Facet filter chain
==================

Three independent facets, always applied in this order:

    band  ->  status  ->  country

Each stage is a plain function (records, selection) -> records. An empty
selection is the "All" state and passes records through untouched; it does
NOT mean "select nothing".
"""

from __future__ import annotations
from typing import AbstractSet, List, Sequence

from .dsa import merge_sort
from .models import FacetSelection, Record
from .normalize import normalize_band, normalize_country, normalize_status

def filter_bands(records: Sequence[Record], selected: AbstractSet[str]) -> List[Record]:
    if not selected:
        return list(records)
    return [r for r in records if normalize_band(r.get("band")) in selected]

def filter_statuses(records: Sequence[Record], selected: AbstractSet[str]) -> List[Record]:
    if not selected:
        return list(records)
    return [r for r in records if normalize_status(r.get("status")) in selected]

def filter_country(records: Sequence[Record], country: str) -> List[Record]:
    if not country:
        return list(records)
    return [r for r in records if normalize_country(r) == country]

def apply_facets(records: Sequence[Record], facets: FacetSelection) -> List[Record]:
    """Run the full chain (band -> status -> country)."""
    out = filter_bands(records, facets.bands)
    out = filter_statuses(out, facets.statuses)
    return filter_country(out, facets.country)

def countries_available(records: Sequence[Record]) -> List[str]:
    """Distinct non-empty country tokens of the FULL record set, sorted."""
    distinct = {normalize_country(r) for r in records}
    distinct.discard("")
    return merge_sort(list(distinct))
