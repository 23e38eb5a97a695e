"""
Session engine (Radar Finder)
=============================

This is the heart of the project. It works like a tiny offline search app:

1) Load dataset -> RadarStore (immutable records)
2) Build the search index once (prefix index over `tags`)
3) Keep the *ephemeral UI state* (raw input, committed query, facets,
   selected record, current URL) in `SessionState`
4) Derive everything else with pure stages:

       committed query -> search -> band -> status -> country -> map points

   Derived views are recomputed only when one of their inputs changed
   (committed query or facet selection); nothing is edited in place.

User events map to methods: `type` (keystroke), `tick` (timer), `commit`,
`clear` (Escape), `enter` (Enter), `jump_to` (row click), `toggle_band`,
`toggle_status`, `set_country`.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging
import time

import pandas as pd

from .facets import apply_facets, countries_available
from .indices import SearchIndex, build_search_index
from .models import BAND_OPTIONS, STATUS_OPTIONS, Bounds, FacetSelection, MapPoint, RadarStore, Record
from .normalize import (
    coordinates, country_label, elevation_m, normalize_band, normalize_country,
    normalize_status, operator_label, site_label, source_label,
)
from .projection import fit_bounds, to_map_points
from .query import DEBOUNCE_SECONDS, Debouncer, first_token, search
from .urlstate import initial_query, sync_url

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "/"

_BAND_CODES = tuple(code for code, _ in BAND_OPTIONS)

@dataclass
class SessionState:
    """Ephemeral UI state; reset by `clear()` or restored from the URL."""
    raw_input: str = ""
    committed_query: str = ""
    facets: FacetSelection = field(default_factory=FacetSelection)
    selected_id: Optional[Any] = None

@dataclass
class _Derived:
    key: Tuple[str, FacetSelection]
    results: List[Record]
    filtered: List[Record]
    points: List[MapPoint]

@dataclass
class RadarFinder:
    """Weather Radar Finder session.

    The engine stores:
    - store: all loaded records
    - idx: the prefix search index (built once)
    - state: the current query and facet selection
    - location: the current URL, kept in sync with the committed query
    """
    store: RadarStore
    idx: Optional[SearchIndex] = None
    location: str = DEFAULT_LOCATION
    debounce_s: float = DEBOUNCE_SECONDS
    clock: Callable[[], float] = time.monotonic
    # Stores CLI commands (for reproducibility in reports)
    command_log: List[str] = field(default_factory=list)
    state: SessionState = field(init=False)

    _debouncer: Debouncer = field(init=False, repr=False)
    _derived: Optional[_Derived] = field(default=None, init=False, repr=False)
    _countries: List[str] = field(default_factory=list, init=False, repr=False)
    _by_id: Dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.idx is None:
            self.idx = build_search_index(self.store.records)
        self.state = SessionState()
        self._debouncer = Debouncer(self.debounce_s, clock=self.clock)
        self._countries = countries_available(self.store.records)
        for i, r in enumerate(self.store.records):
            rid = r.get("id")
            if rid is not None:
                self._by_id.setdefault(str(rid), i)

        # A shared link seeds the search immediately (no debounce).
        q = initial_query(self.location)
        if q:
            self.state.raw_input = q
            self._apply_commit(q)

    @classmethod
    def from_records(cls, records, **kwargs) -> "RadarFinder":
        return cls(store=RadarStore(records=tuple(records)), **kwargs)

    # ---------------- Query input ----------------
    def type(self, text: str) -> None:
        """A keystroke: update raw input and restart the debounce timer."""
        self.state.raw_input = text
        self._debouncer.push(text)

    def tick(self) -> bool:
        """Timer check. Returns True if a pending input was committed."""
        value = self._debouncer.poll()
        if value is None:
            return False
        self._apply_commit(value)
        return True

    def commit(self) -> None:
        """Commit the current raw input now, skipping the debounce."""
        self._debouncer.cancel()
        self._apply_commit(self.state.raw_input)

    def clear(self) -> None:
        """Escape: empty the search and drop the selection."""
        self._debouncer.cancel()
        self.state.raw_input = ""
        self.state.selected_id = None
        self._apply_commit("")

    def _apply_commit(self, query: str) -> None:
        self.state.committed_query = query
        self.location = sync_url(self.location, query)
        logger.debug("committed query %r -> %s", query, self.location)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def highlight_token(self) -> str:
        return first_token(self.state.committed_query)

    # ---------------- Facets ----------------
    def toggle_band(self, code: str) -> bool:
        """Toggle one band; returns True if it is now selected."""
        code = str(code).strip().upper()
        if code not in _BAND_CODES:
            raise ValueError(f"band must be one of: {', '.join(_BAND_CODES)}")
        bands = set(self.state.facets.bands)
        now_on = code not in bands
        if now_on:
            bands.add(code)
        else:
            bands.discard(code)
        self.state.facets = replace(self.state.facets, bands=frozenset(bands))
        return now_on

    def toggle_status(self, status: str) -> bool:
        """Toggle one status bucket (case-insensitive name)."""
        match = next((s for s in STATUS_OPTIONS if s.lower() == str(status).strip().lower()), None)
        if match is None:
            raise ValueError(f"status must be one of: {', '.join(STATUS_OPTIONS)}")
        statuses = set(self.state.facets.statuses)
        now_on = match not in statuses
        if now_on:
            statuses.add(match)
        else:
            statuses.discard(match)
        self.state.facets = replace(self.state.facets, statuses=frozenset(statuses))
        return now_on

    def clear_bands(self) -> None:
        self.state.facets = replace(self.state.facets, bands=frozenset())

    def clear_statuses(self) -> None:
        self.state.facets = replace(self.state.facets, statuses=frozenset())

    def set_country(self, country: str) -> None:
        """Choose one country ("" for All). Must come from `countries`."""
        country = (country or "").strip()
        if country and country not in self._countries:
            # terminal input is matched case-insensitively ("jpn", "hungary")
            folded = country.casefold()
            match = next((c for c in self._countries if c.casefold() == folded), None)
            if match is None:
                raise ValueError(f"unknown country: {country!r}")
            country = match
        self.state.facets = replace(self.state.facets, country=country)

    @property
    def countries(self) -> List[str]:
        return list(self._countries)

    # ---------------- Derived views ----------------
    def _derive(self) -> _Derived:
        key = (self.state.committed_query, self.state.facets)
        if self._derived is None or self._derived.key != key:
            results = search(self.idx, self.store.records, self.state.committed_query)
            filtered = apply_facets(results, self.state.facets)
            self._derived = _Derived(key=key, results=results, filtered=filtered,
                                     points=to_map_points(filtered))
        return self._derived

    @property
    def results(self) -> List[Record]:
        """Search stage output (before facets)."""
        return list(self._derive().results)

    @property
    def filtered(self) -> List[Record]:
        """Final list after band -> status -> country."""
        return list(self._derive().filtered)

    @property
    def map_points(self) -> List[MapPoint]:
        return list(self._derive().points)

    @property
    def hits(self) -> int:
        return len(self._derive().filtered)

    @property
    def bounds(self) -> Optional[Bounds]:
        return fit_bounds(self._derive().points)

    # ---------------- Selection ----------------
    def record(self, record_id: Any) -> Record:
        pos = self._by_id.get(str(record_id))
        if pos is None:
            raise KeyError(f"no radar with id {record_id!r}")
        return self.store.records[pos]

    def jump_to(self, record_id: Any) -> Optional[Tuple[float, float]]:
        """Select a record; returns the (lat, lon) to fly to, if it has one."""
        r = self.record(record_id)
        self.state.selected_id = r.get("id")
        lat, lon = coordinates(r)
        if lat is None or lon is None:
            return None
        return lat, lon

    def enter(self) -> Optional[Record]:
        """Enter: jump to the first filtered record (if any)."""
        rows = self._derive().filtered
        if not rows:
            return None
        first = rows[0]
        self.state.selected_id = first.get("id")
        return first

    # ---------------- Output operations ----------------
    def to_frame(self) -> pd.DataFrame:
        """Flat table of the current filtered list (one row per record)."""
        rows = []
        for r in self._derive().filtered:
            lat, lon = coordinates(r)
            rows.append({
                "id": r.get("id"),
                "site": site_label(r),
                "country": normalize_country(r),
                "country_label": country_label(r),
                "band": normalize_band(r.get("band")),
                "status": normalize_status(r.get("status")),
                "operator": operator_label(r),
                "source": source_label(r),
                "lat": lat,
                "lon": lon,
                "elevation_m": elevation_m(r),
                "tags": r.get("tags") if isinstance(r.get("tags"), str) else "",
            })
        return pd.DataFrame(rows, columns=[
            "id", "site", "country", "country_label", "band", "status",
            "operator", "source", "lat", "lon", "elevation_m", "tags",
        ])

    def export_csv(self, path: str) -> None:
        self.to_frame().to_csv(path, index=False, encoding="utf-8")

    def export_xlsx(self, path: str) -> None:
        self.to_frame().to_excel(path, index=False, engine="openpyxl")

    def export_json(self, path: str) -> None:
        """Export the current selection as raw records.

        The output is itself a valid catalog file, so a subset can be
        reloaded with `--json`.
        """
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._derive().filtered, f, ensure_ascii=False, indent=2)

    def export_points_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump([asdict(p) for p in self._derive().points], f, ensure_ascii=False, indent=2)
