from atm_locator.geo import GeoPoint
from atm_locator.normalize import (
    candidate_from_element,
    candidate_from_listing,
    element_address,
    maps_link_from_place_id,
    maps_link_from_point,
)


def test_listing_full_record():
    record = {
        "title": "Bank of America ATM",
        "place_id": "ChIJabc123",
        "data_id": "0x1:0x2",
        "type": "ATM",
        "address": "1560 Broadway, New York, NY 10036",
        "phone": "(800) 432-1000",
        "rating": 3.2,
        "reviews": 41,
        "hours": "Open 24 hours",
        "gps_coordinates": {"latitude": 40.7590, "longitude": -73.9845},
    }
    c = candidate_from_listing(record, "Bank of America ATM")

    assert c.name == "Bank of America ATM"
    assert c.point == GeoPoint(40.7590, -73.9845)
    assert c.maps_link == "https://www.google.com/maps/search/?api=1&query_place_id=ChIJabc123"
    assert c.rating == 3.2
    assert c.reviews == 41
    assert c.source == {"kind": "serpapi", "data_id": "0x1:0x2", "type": "ATM"}
    assert c.distance_m is None


def test_listing_map_link_preference_order():
    with_coords = candidate_from_listing(
        {"gps_coordinates": {"latitude": 1.5, "longitude": 2.5}, "directions_link": "https://d"}, "x"
    )
    assert with_coords.maps_link == maps_link_from_point(GeoPoint(1.5, 2.5))
    assert "query=1.5%2C2.5" in with_coords.maps_link

    directions_only = candidate_from_listing({"directions_link": "https://d"}, "x")
    assert directions_only.maps_link == "https://d"

    nothing = candidate_from_listing({}, "x")
    assert nothing.maps_link is None


def test_listing_missing_and_malformed_fields_default():
    c = candidate_from_listing(
        {
            "name": "BofA",
            "rating": "4.5",
            "reviews": True,
            "gps_coordinates": {"latitude": "40.1", "longitude": None},
            "open_state": "Closes 6PM",
        },
        "Bank of America ATM",
    )
    assert c.name == "BofA"
    assert c.rating is None
    assert c.reviews is None
    assert c.point is None
    assert c.hours == "Closes 6PM"
    assert candidate_from_listing({}, "Bank of America ATM").name == "Bank of America ATM"


def test_element_node_and_center():
    node = candidate_from_element(
        {
            "type": "node",
            "id": 42,
            "lat": 37.78,
            "lon": -122.41,
            "tags": {"amenity": "atm", "operator": "Bank of America", "opening_hours": "24/7"},
        },
        "ATM",
    )
    assert node.name == "Bank of America"
    assert node.point == GeoPoint(37.78, -122.41)
    assert node.hours == "24/7"
    assert node.raw_ref == "node/42"
    assert node.source["operator"] == "Bank of America"

    way = candidate_from_element(
        {"type": "way", "id": 7, "center": {"lat": 37.79, "lon": -122.40}, "tags": {"amenity": "atm"}},
        "ATM",
    )
    assert way.name == "ATM"
    assert way.point == GeoPoint(37.79, -122.40)


def test_element_without_coordinates_links_to_osm():
    c = candidate_from_element({"type": "relation", "id": 9}, "ATM")
    assert c.point is None
    assert c.maps_link == "https://www.openstreetmap.org/relation/9"


def test_element_address_variants():
    assert element_address({"addr:full": "1 Main St, Springfield"}) == "1 Main St, Springfield"
    assert (
        element_address(
            {
                "addr:housenumber": "100",
                "addr:street": "Market St",
                "addr:city": "San Francisco",
                "addr:state": "CA",
                "addr:postcode": "94105",
            }
        )
        == "100 Market St, San Francisco, CA 94105"
    )
    assert element_address({}) is None


def test_place_id_link_is_quoted():
    assert maps_link_from_place_id(None) is None
    assert maps_link_from_place_id("a b").endswith("query_place_id=a%20b")
