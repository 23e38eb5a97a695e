"""
Search index (forward / prefix inverted index)
==============================================

The only searchable text of a radar record is its `tags` string, a flat
list of lowercase tokens produced by the upstream merge step, for example:

    "japan tokyo jma c dual opera"

At load time we build an inverted index: prefix -> sorted list of record
positions. Every token is indexed under all of its prefixes ("forward"
tokenization), so the query token "tok" finds the record above through
"tokyo". Looking up a query token is then one dict access.

Why positions and not ids?
- Positions in the RadarStore are dense integers, so the lists stay small and
  sorted, and the two-pointer intersection in `dsa.py` applies directly.
- Sorted lists keep the original record order after intersecting.
"""

from __future__ import annotations
from bisect import insort
from typing import Any, Dict, Iterable, List, Set
import logging
import re

from .dsa import intersect_many
from .models import Record

logger = logging.getLogger(__name__)

# any run of non-word characters (or underscores) separates tokens
_SPLIT_RE = re.compile(r"[\W_]+")

class IndexFrozenError(RuntimeError):
    """Raised when adding to an index that was already frozen."""

def corpus_tokens(text: Any) -> List[str]:
    """Split an indexed tags string into lowercase tokens."""
    if not isinstance(text, str):
        return []
    return [t for t in _SPLIT_RE.split(text.lower()) if t]

class SearchIndex:
    """Prefix index from token prefixes to sorted record positions."""

    def __init__(self) -> None:
        self._prefixes: Dict[str, List[int]] = {}
        self._vocabulary: Set[str] = set()
        self._positions: Set[int] = set()
        self._frozen = False

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def vocabulary_size(self) -> int:
        return len(self._vocabulary)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def add(self, position: int, text: Any) -> None:
        """Index `text` under `position`."""
        if self._frozen:
            raise IndexFrozenError("search index is frozen; build a new one instead")
        self._positions.add(position)
        seen: Set[str] = set()
        for tok in corpus_tokens(text):
            self._vocabulary.add(tok)
            for end in range(1, len(tok) + 1):
                prefix = tok[:end]
                if prefix in seen:
                    continue
                seen.add(prefix)
                ids = self._prefixes.setdefault(prefix, [])
                # appends are the common case (positions arrive in order)
                if not ids or ids[-1] < position:
                    ids.append(position)
                elif position not in ids:
                    insort(ids, position)

    def search(self, token: Any) -> List[int]:
        """Sorted positions whose corpus has a token starting with `token`.

        Punctuation inside the query token splits it the same way indexed
        text is split, and every piece must match.
        """
        if not isinstance(token, str):
            return []
        parts = [p for p in _SPLIT_RE.split(token.lower()) if p]
        if not parts:
            return []
        # "jma-s" is indexed as "jma" and "s"; both must match
        return intersect_many([self._prefixes.get(p, []) for p in parts])

def build_search_index(records: Iterable[Record]) -> SearchIndex:
    """Build (and freeze) the index for a loaded record set."""
    idx = SearchIndex()
    for i, r in enumerate(records):
        idx.add(i, r.get("tags") if isinstance(r, dict) else None)
    idx.freeze()
    logger.debug("search index built: %d records, %d tokens", len(idx), idx.vocabulary_size)
    return idx
