"""In-process geocode cache and upstream throttle.

Both objects are shared by every request served by one process and are safe
to use from multiple threads.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .geo import GeoPoint

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class GeocodeResult:
    point: GeoPoint
    display_name: str


def normalize_query_key(query: str) -> str:
    return " ".join(query.split()).lower()


class GeocodeCache:
    """Unbounded map of normalized query -> GeocodeResult or None (not found)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Optional[GeocodeResult]] = {}

    def lookup(self, query: str) -> Tuple[bool, Optional[GeocodeResult]]:
        """Return (hit, value); value is None for a cached "not found"."""
        key = normalize_query_key(query)
        with self._lock:
            value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            return False, None
        return True, value  # type: ignore[return-value]

    def store(self, query: str, result: Optional[GeocodeResult]) -> None:
        key = normalize_query_key(query)
        with self._lock:
            self._entries[key] = result

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class Throttle:
    """Enforce a minimum interval between calls to one upstream.

    The lock is held while waiting, so concurrent callers queue up and each
    observes the full interval after the previous call.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = float(min_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    def wait(self) -> float:
        """Block until a call is allowed; return the time spent waiting."""
        with self._lock:
            waited = 0.0
            if self._last_call is not None:
                delta = self._clock() - self._last_call
                if delta < self.min_interval:
                    waited = self.min_interval - delta
                    logger.debug("Throttling upstream call for %.3fs", waited)
                    self._sleep(waited)
            self._last_call = self._clock()
            return waited
