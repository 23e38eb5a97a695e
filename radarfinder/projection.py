"""
Map projection
==============

Turns the filtered records into lightweight map points. Records without a
latitude or longitude are skipped here (they are still listed and
searchable, they just cannot be drawn).
"""

from __future__ import annotations
from typing import List, Optional, Sequence

from .models import Bounds, MapPoint, Record
from .normalize import _to_str, coordinates, country_label, site_label

def to_map_point(record: Record) -> Optional[MapPoint]:
    lat, lon = coordinates(record)
    if lat is None or lon is None:
        return None
    rid = record.get("id")
    return MapPoint(
        id=rid,
        site=site_label(record, default=rid),
        country=country_label(record),
        band=_to_str(record.get("band")),
        lat=lat,
        lon=lon,
    )

def to_map_points(records: Sequence[Record]) -> List[MapPoint]:
    """Project records to points, keeping input order."""
    out: List[MapPoint] = []
    for r in records:
        p = to_map_point(r)
        if p is not None:
            out.append(p)
    return out

def fit_bounds(points: Sequence[MapPoint]) -> Optional[Bounds]:
    """Bounding box for fitting the map viewport (None when no points)."""
    if not points:
        return None
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    return Bounds(south=min(lats), west=min(lons), north=max(lats), east=max(lons))
