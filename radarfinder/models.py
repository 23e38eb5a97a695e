"""
Data model (RadarStore, MapPoint, FacetSelection)
=================================================

Radar records arrive as semi-structured JSON objects (plain dicts). Two
upstream sources are merged into one file, so the same concept (country,
site name, operator) can live under different keys. We do NOT force the
records into a fixed schema; the normalizers in `normalize.py` read them.

What we do freeze:
- the loaded store (`RadarStore`), so records are never edited after loading,
- the derived view objects (`MapPoint`, `Bounds`), and
- the facet selection (`FacetSelection`), so each change is a new value.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

Record = Dict[str, Any]

BAND_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("S", "S-band"),
    ("C", "C-band"),
    ("X", "X-band"),
)

STATUS_OPTIONS: Tuple[str, ...] = (
    "Operational",
    "Planned",
    "Under Construction",
    "Decommissioned",
)

@dataclass(frozen=True)
class RadarStore:
    """The loaded record set.

    `records` is position-addressed: the search index refers to records by
    their index in this tuple, never by their `id`.
    """
    records: Tuple[Record, ...] = ()
    source: Optional[str] = None
    # set when the load failed; records is empty in that case
    load_error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> bool:
        return self.load_error is not None

@dataclass(frozen=True)
class MapPoint:
    """One marker on the map (only records that have coordinates)."""
    id: Any
    site: str
    country: str
    band: str
    lat: float
    lon: float

@dataclass(frozen=True)
class Bounds:
    """Bounding box of a set of map points (degrees)."""
    south: float
    west: float
    north: float
    east: float

    def center(self) -> Tuple[float, float]:
        return ((self.south + self.north) / 2.0, (self.west + self.east) / 2.0)

@dataclass(frozen=True)
class FacetSelection:
    """Current facet choices. Empty means "All" (no restriction)."""
    bands: FrozenSet[str] = field(default_factory=frozenset)
    statuses: FrozenSet[str] = field(default_factory=frozenset)
    country: str = ""

    def is_empty(self) -> bool:
        return not self.bands and not self.statuses and not self.country
