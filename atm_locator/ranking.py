"""Distance ranking and result-size bounds."""
from __future__ import annotations

import dataclasses
from typing import Iterable, List

from . import config
from .geo import GeoPoint, distance_m
from .normalize import PoiCandidate


def clamp_limit(limit: int) -> int:
    return max(config.MIN_LIMIT, min(int(limit), config.MAX_LIMIT))


def rank(origin: GeoPoint, candidates: Iterable[PoiCandidate], limit: int) -> List[PoiCandidate]:
    """Nearest-first candidates with distance_m set, truncated after sorting.

    Candidates without a point are dropped. sorted() is stable, so equal
    distances keep upstream order.
    """
    measured = [
        dataclasses.replace(c, distance_m=distance_m(origin, c.point))
        for c in candidates
        if c.point is not None
    ]
    measured = sorted(measured, key=lambda c: c.distance_m)
    return measured[: clamp_limit(limit)]


def preserve_order(candidates: Iterable[PoiCandidate], limit: int) -> List[PoiCandidate]:
    return list(candidates)[: clamp_limit(limit)]
