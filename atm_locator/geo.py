"""Geospatial helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from .errors import ValidationError

EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not _is_finite_number(self.lat) or not -90.0 <= self.lat <= 90.0:
            raise ValidationError("lat", "must be a number between -90 and 90")
        if not _is_finite_number(self.lon) or not -180.0 <= self.lon <= 180.0:
            raise ValidationError("lon", "must be a number between -180 and 180")

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def point_or_none(lat: Any, lon: Any) -> Optional[GeoPoint]:
    """Build a GeoPoint from loosely typed upstream values, or None."""
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        return None
    if isinstance(lat, bool) or isinstance(lon, bool):
        return None
    try:
        return GeoPoint(lat_f, lon_f)
    except ValidationError:
        return None


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lon - a.lon)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def distance_m(a: GeoPoint, b: GeoPoint) -> int:
    return int(round(haversine_m(a, b)))
