"""
Field normalizers
=================

Radar records come from two merged upstream databases, so the same fact can
be spelled many ways ("C-band", "c band", "C"; "OPERATIONAL", "operational
since 2004"; "JPN", "jpn", "Japan", {"alpha3": "JPN"}).

Everything in this module is a pure, total function:
- it never raises, whatever it is given (None, NaN, numbers, dicts, lists),
- it always returns a value from a small, fixed set (or a plain string).

Facet filters and the map projection only ever look at records through
these functions.
"""

from __future__ import annotations
from typing import Any, List, Optional, Tuple
import math
import re
import pandas as pd

_BAND_STRIP_RE = re.compile(r"[- ]")
_ISO3_RE = re.compile(r"[A-Za-z]{3}")
_TAG_SPLIT_RE = re.compile(r"[,\s;]+")

CANONICAL_BANDS = ("S", "C", "X")

# Order matters: first match wins.
_STATUS_RULES = (
    ("operational", "Operational"),
    ("planned", "Planned"),
    ("construction", "Under Construction"),
    ("decommission", "Decommissioned"),
)

def _is_missing(x: Any) -> bool:
    if x is None:
        return True
    # pd.isna on a list/dict returns an array; only ask about scalars
    return bool(pd.api.types.is_scalar(x) and pd.isna(x))

def _to_str(x: Any) -> str:
    """Convert anything to a trimmed string, "" if missing."""
    if _is_missing(x):
        return ""
    try:
        return str(x).strip()
    except Exception:
        return ""

def _to_float(x: Any) -> Optional[float]:
    """Convert a coordinate to float, returning None if missing/invalid."""
    if _is_missing(x) or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except Exception:
        return None
    return v if math.isfinite(v) else None

def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None

def _first_non_empty(*values: Any) -> str:
    for v in values:
        s = _to_str(v)
        if s:
            return s
    return ""

# -----------------------------
# Canonical facet values
# -----------------------------

def normalize_band(value: Any) -> str:
    """Map free-text band to "S", "C", "X" or ""."""
    s = _BAND_STRIP_RE.sub("", _to_str(value).upper())
    if not s:
        return ""
    c = s[0]
    return c if c in CANONICAL_BANDS else ""

def normalize_status(value: Any) -> str:
    """Map free-text status to one of the four buckets, or "" (unknown)."""
    s = _to_str(value).lower()
    if not s:
        return ""
    for needle, bucket in _STATUS_RULES:
        if needle in s:
            return bucket
    return ""

def _raw_country(record: Any) -> str:
    nested = _get(record, "country")
    return _first_non_empty(
        _get(record, "country_iso3"),
        _get(record, "country_name"),
        _get(nested, "alpha3"),
        _get(nested, "name"),
    )

def normalize_country(record: Any) -> str:
    """Canonical country token: ISO3 uppercased, otherwise the free-text name."""
    s = _raw_country(record)
    if _ISO3_RE.fullmatch(s):
        return s.upper()
    return s

def tokenize(query: Any) -> List[str]:
    """Split a search string into lowercase tokens."""
    return _to_str(query).lower().split()

# -----------------------------
# Display fallbacks
# -----------------------------

def site_label(record: Any, default: Any = "") -> str:
    return _first_non_empty(_get(record, "site_name"), _get(record, "name")) or _to_str(default)

def country_label(record: Any) -> str:
    """Country as shown to the user (no ISO3 uppercasing)."""
    return _raw_country(record)

def operator_label(record: Any) -> str:
    org = _get(record, "org")
    return _first_non_empty(_get(record, "operator"), _get(org, "authorityName"), _get(org, "ownerName"))

def source_label(record: Any) -> str:
    return _first_non_empty(_get(record, "source_type"), _get(record, "source"))

def source_link(record: Any) -> str:
    return _first_non_empty(_get(record, "source_url"), _get(_get(record, "links"), "web"))

def details_link(record: Any) -> str:
    return _to_str(_get(_get(record, "links"), "details"))

def tag_list(record: Any) -> List[str]:
    tags = _get(record, "tags")
    if not isinstance(tags, str):
        return []
    return [t for t in _TAG_SPLIT_RE.split(tags) if t]

def coordinates(record: Any) -> Tuple[Optional[float], Optional[float]]:
    loc = _get(record, "location")
    return _to_float(_get(loc, "lat")), _to_float(_get(loc, "lon"))

def elevation_m(record: Any) -> Optional[float]:
    return _to_float(_get(_get(record, "location"), "elevation_m"))
