"""
URL state sync
==============

The committed search is mirrored into the `q` query parameter so a search
can be bookmarked or shared. Two plain functions, no browser involved:

- `initial_query(url)`  read once at startup
- `sync_url(url, query)` called after every commit; returns the replacement
  URL (same path, other params and fragment kept). An empty query removes
  `q` instead of writing `q=`.
"""

from __future__ import annotations
from typing import List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

QUERY_PARAM = "q"

def initial_query(url: Optional[str], param: str = QUERY_PARAM) -> Optional[str]:
    """Value of `param` in `url`, or None if absent or empty."""
    if not url:
        return None
    for k, v in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if k == param:
            return v or None
    return None

def sync_url(url: Optional[str], query: str, param: str = QUERY_PARAM) -> str:
    """Return `url` with `param` set to `query` (or removed when empty)."""
    parts = urlsplit(url or "/")
    params: List[Tuple[str, str]] = []
    written = False
    for k, v in parse_qsl(parts.query, keep_blank_values=True):
        if k != param:
            params.append((k, v))
        elif query and not written:
            # keep the parameter where it was
            params.append((k, query))
            written = True
    if query and not written:
        params.append((param, query))
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(params), parts.fragment))
