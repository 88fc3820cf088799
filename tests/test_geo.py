import math

import pytest

from atm_locator.errors import ValidationError
from atm_locator.geo import GeoPoint, distance_m, haversine_m, point_or_none


def test_distance_to_self_is_zero():
    p = GeoPoint(37.7749, -122.4194)
    assert haversine_m(p, p) == 0.0
    assert distance_m(p, p) == 0


def test_distance_is_symmetric():
    a = GeoPoint(40.7580, -73.9855)
    b = GeoPoint(40.7484, -73.9857)
    assert distance_m(a, b) == distance_m(b, a)
    assert math.isclose(haversine_m(a, b), haversine_m(b, a))


def test_distance_known_value():
    # One degree of latitude on a 6,371 km sphere.
    a = GeoPoint(0.0, 0.0)
    b = GeoPoint(1.0, 0.0)
    assert distance_m(a, b) == 111195


def test_antipodal_points_do_not_fail():
    a = GeoPoint(0.0, 0.0)
    b = GeoPoint(0.0, 180.0)
    assert distance_m(a, b) == round(math.pi * 6371000.0)


@pytest.mark.parametrize(
    "lat,lon",
    [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.5), (0.0, -181.0), (float("nan"), 0.0), (True, 0.0)],
)
def test_geopoint_rejects_invalid(lat, lon):
    with pytest.raises(ValidationError):
        GeoPoint(lat, lon)


def test_geopoint_is_immutable():
    p = GeoPoint(1.0, 2.0)
    with pytest.raises(Exception):
        p.lat = 3.0  # type: ignore[misc]


def test_point_or_none_tolerates_bad_values():
    assert point_or_none("37.5", "-122.1") == GeoPoint(37.5, -122.1)
    assert point_or_none(None, 1.0) is None
    assert point_or_none("abc", 1.0) is None
    assert point_or_none(95.0, 1.0) is None
