"""Adapters from heterogeneous upstream records to PoiCandidate."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from .geo import GeoPoint, point_or_none

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1"
OSM_ELEMENT_URL = "https://www.openstreetmap.org"


@dataclass(frozen=True)
class PoiCandidate:
    name: str
    address: Optional[str] = None
    point: Optional[GeoPoint] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    hours: Optional[str] = None
    maps_link: Optional[str] = None
    place_id: Optional[str] = None
    distance_m: Optional[int] = None
    source: Dict[str, Any] = field(default_factory=dict)
    raw_ref: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "rating": self.rating,
            "reviews": self.reviews,
            "hours": self.hours,
            "location": self.point.as_dict() if self.point is not None else None,
            "distance_m": self.distance_m,
            "maps_link": self.maps_link,
            "place_id": self.place_id,
            "source": dict(self.source),
        }


def maps_link_from_place_id(place_id: Any) -> Optional[str]:
    if not place_id:
        return None
    return f"{MAPS_SEARCH_URL}&query_place_id={quote(str(place_id), safe='')}"


def maps_link_from_point(point: Optional[GeoPoint]) -> Optional[str]:
    if point is None:
        return None
    return f"{MAPS_SEARCH_URL}&query={quote(f'{point.lat},{point.lon}', safe='')}"


def _str_or_none(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


# Adapter for SerpApi local_results listings

def candidate_from_listing(record: Mapping[str, Any], default_name: str) -> PoiCandidate:
    gps = record.get("gps_coordinates")
    point = None
    if isinstance(gps, Mapping):
        lat = gps.get("latitude")
        lon = gps.get("longitude")
        if _number_or_none(lat) is not None and _number_or_none(lon) is not None:
            point = point_or_none(lat, lon)

    place_id = _str_or_none(record.get("place_id"))
    maps_link = (
        maps_link_from_place_id(place_id)
        or maps_link_from_point(point)
        or _str_or_none(record.get("directions_link"))
    )

    return PoiCandidate(
        name=_str_or_none(record.get("title")) or _str_or_none(record.get("name")) or default_name,
        address=_str_or_none(record.get("address")),
        point=point,
        phone=_str_or_none(record.get("phone")),
        rating=_number_or_none(record.get("rating")),
        reviews=_int_or_none(record.get("reviews")),
        hours=_str_or_none(record.get("hours")) or _str_or_none(record.get("open_state")),
        maps_link=maps_link,
        place_id=place_id,
        source={
            "kind": "serpapi",
            "data_id": _str_or_none(record.get("data_id")),
            "type": _str_or_none(record.get("type")),
        },
        raw_ref=_str_or_none(record.get("data_id")) or place_id,
    )


# Adapter for Overpass elements

def element_address(tags: Mapping[str, Any]) -> Optional[str]:
    full = _str_or_none(tags.get("addr:full"))
    if full:
        return full
    street = " ".join(
        p for p in (_str_or_none(tags.get("addr:housenumber")), _str_or_none(tags.get("addr:street"))) if p
    )
    parts = [
        street,
        _str_or_none(tags.get("addr:city")),
        " ".join(p for p in (_str_or_none(tags.get("addr:state")), _str_or_none(tags.get("addr:postcode"))) if p),
    ]
    address = ", ".join(p for p in parts if p)
    return address or None


def element_point(element: Mapping[str, Any]) -> Optional[GeoPoint]:
    if "lat" in element and "lon" in element:
        return point_or_none(element.get("lat"), element.get("lon"))
    center = element.get("center")
    if isinstance(center, Mapping):
        return point_or_none(center.get("lat"), center.get("lon"))
    return None


def candidate_from_element(element: Mapping[str, Any], default_name: str) -> PoiCandidate:
    tags = element.get("tags")
    if not isinstance(tags, Mapping):
        tags = {}
    point = element_point(element)
    element_type = _str_or_none(element.get("type"))
    element_id = _str_or_none(element.get("id"))
    osm_ref = f"{element_type}/{element_id}" if element_type and element_id else None

    maps_link = maps_link_from_point(point)
    if maps_link is None and osm_ref:
        maps_link = f"{OSM_ELEMENT_URL}/{osm_ref}"

    name = (
        _str_or_none(tags.get("name"))
        or _str_or_none(tags.get("brand"))
        or _str_or_none(tags.get("operator"))
        or default_name
    )
    return PoiCandidate(
        name=name,
        address=element_address(tags),
        point=point,
        phone=_str_or_none(tags.get("phone")) or _str_or_none(tags.get("contact:phone")),
        hours=_str_or_none(tags.get("opening_hours")),
        maps_link=maps_link,
        source={
            "kind": "overpass",
            "data_id": osm_ref,
            "type": _str_or_none(tags.get("amenity")),
            "operator": _str_or_none(tags.get("operator")),
            "brand": _str_or_none(tags.get("brand")),
        },
        raw_ref=osm_ref,
    )
