"""
Query pipeline
==============

Raw keystrokes -> debounced committed query -> tokens -> matching records.

1) `Debouncer` holds at most ONE pending value and its deadline. Every new
   keystroke replaces the value and restarts the deadline, so a burst of
   typing is committed once, after the user pauses.
2) `search()` tokenizes the committed query and intersects the per-token
   position lists from the index (logical AND).
3) `highlight()` / `mark()` locate the first query token in a display string.

The clock is injectable so tests can drive time by hand.
"""

from __future__ import annotations
from typing import Any, Callable, List, Optional, Sequence, Tuple
import re
import time

from .dsa import intersect_many
from .indices import SearchIndex
from .models import Record
from .normalize import tokenize

DEBOUNCE_SECONDS = 0.2

_NOTHING = object()

class Debouncer:
    """Single-slot cancellable timer for committing input."""

    def __init__(self, delay_s: float = DEBOUNCE_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay_s = delay_s
        self._clock = clock
        self._pending: Any = _NOTHING
        self._deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._pending is not _NOTHING

    def push(self, value: Any) -> None:
        """(Re)start the timer with `value`; any earlier value is dropped."""
        self._pending = value
        self._deadline = self._clock() + self.delay_s

    def poll(self) -> Optional[Any]:
        """Return the pending value if its timer has fired, else None."""
        if not self.pending or self._clock() < self._deadline:
            return None
        return self.flush()

    def flush(self) -> Optional[Any]:
        """Commit now (used by Enter and by startup seeding)."""
        if not self.pending:
            return None
        value = self._pending
        self.cancel()
        return value

    def cancel(self) -> None:
        self._pending = _NOTHING
        self._deadline = None

def search(index: SearchIndex, records: Sequence[Record], query: Any) -> List[Record]:
    """Records matching every token of `query`, in store order.

    An empty (or whitespace-only) query matches everything.
    """
    tokens = tokenize(query)
    if not tokens:
        return list(records)
    positions = intersect_many([index.search(t) for t in tokens])
    return [records[i] for i in positions]

def first_token(query: Any) -> str:
    tokens = tokenize(query)
    return tokens[0] if tokens else ""

def highlight(text: Any, token: Any) -> Optional[Tuple[str, str, str]]:
    """Split `text` around the first case-insensitive match of `token`.

    Returns (before, match, after), or None if there is nothing to mark.
    """
    if not isinstance(text, str) or not text or not isinstance(token, str) or not token:
        return None
    m = re.search(re.escape(token), text, re.IGNORECASE)
    if m is None:
        return None
    return text[:m.start()], m.group(0), text[m.end():]

def mark(text: Any, token: Any, open_: str = "[", close: str = "]") -> str:
    """Wrap the first match of `token` in `text`; unmatched text is unchanged."""
    parts = highlight(text, token)
    if parts is None:
        return text if isinstance(text, str) else ""
    before, hit, after = parts
    return f"{before}{open_}{hit}{close}{after}"
