"""
Dataset loader (JSON -> RadarStore)
===================================

This module reads the merged radar catalog (a JSON array of records) once,
at startup, from a local path or an http(s) URL.

Key ideas:
- Records stay plain dicts; missing fields are fine (normalizers cope).
- Entries that are not JSON objects are skipped; duplicate ids keep the
  first occurrence. Both are logged, neither is fatal.
- A failed load (missing file, network error, bad JSON) is NOT retried.
  `load_store` turns it into an empty store with `load_error` set, so the
  caller can show a "failed to load" notice instead of silently showing
  zero hits.
"""

from __future__ import annotations
from typing import Any, List, Set
import json
import logging

import requests

from .models import RadarStore, Record

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = "public/radars_v2.json"
URL_TIMEOUT_S = 30

class CatalogLoadError(RuntimeError):
    """The catalog file could not be fetched or parsed."""

def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))

def _read_text(source: str) -> str:
    if _is_url(source):
        resp = requests.get(source, timeout=URL_TIMEOUT_S)
        resp.raise_for_status()
        return resp.content.decode("utf-8")
    with open(source, "r", encoding="utf-8") as f:
        return f.read()

def _clean_records(payload: List[Any]) -> List[Record]:
    records: List[Record] = []
    seen_ids: Set[str] = set()
    skipped = dupes = 0
    for item in payload:
        if not isinstance(item, dict):
            skipped += 1
            continue
        rid = item.get("id")
        if rid is not None:
            key = str(rid)
            if key in seen_ids:
                dupes += 1
                continue
            seen_ids.add(key)
        records.append(item)
    if skipped:
        logger.warning("skipped %d catalog entries that are not objects", skipped)
    if dupes:
        logger.warning("dropped %d records with duplicate ids (first occurrence kept)", dupes)
    return records

def load_radars_json(source: str = DEFAULT_DATA_PATH) -> List[Record]:
    """Load and clean the catalog. Raises CatalogLoadError on failure."""
    try:
        payload = json.loads(_read_text(source))
    except (OSError, ValueError, requests.RequestException) as e:
        raise CatalogLoadError(f"cannot load radar catalog from {source}: {e}") from e
    if not isinstance(payload, list):
        raise CatalogLoadError(
            f"radar catalog {source} must be a JSON array, got {type(payload).__name__}"
        )
    records = _clean_records(payload)
    logger.info("loaded %d radar records from %s", len(records), source)
    return records

def load_store(source: str = DEFAULT_DATA_PATH) -> RadarStore:
    """Load the catalog into an immutable store; failures give an empty store."""
    try:
        records = load_radars_json(source)
    except CatalogLoadError as e:
        logger.error("%s", e)
        return RadarStore(records=(), source=source, load_error=str(e))
    return RadarStore(records=tuple(records), source=source)
