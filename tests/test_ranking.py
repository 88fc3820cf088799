from atm_locator.geo import GeoPoint
from atm_locator.normalize import PoiCandidate
from atm_locator.ranking import clamp_limit, preserve_order, rank

ORIGIN = GeoPoint(37.7749, -122.4194)


def candidate(name, lat=None, lon=None):
    point = GeoPoint(lat, lon) if lat is not None else None
    return PoiCandidate(name=name, point=point)


def test_rank_sorts_by_distance_and_sets_distance():
    far = candidate("far", 37.80, -122.4194)
    near = candidate("near", 37.776, -122.4194)
    mid = candidate("mid", 37.785, -122.4194)

    ranked = rank(ORIGIN, [far, near, mid], limit=5)

    assert [c.name for c in ranked] == ["near", "mid", "far"]
    distances = [c.distance_m for c in ranked]
    assert distances == sorted(distances)
    assert all(isinstance(d, int) for d in distances)
    assert far.distance_m is None


def test_rank_truncates_after_sorting():
    items = [candidate(f"p{i}", 37.7749 + 0.01 * (10 - i), -122.4194) for i in range(10)]
    ranked = rank(ORIGIN, items, limit=3)
    assert [c.name for c in ranked] == ["p9", "p8", "p7"]


def test_rank_excludes_candidates_without_point():
    ranked = rank(ORIGIN, [candidate("nowhere"), candidate("here", 37.7749, -122.4194)], limit=5)
    assert [c.name for c in ranked] == ["here"]
    assert ranked[0].distance_m == 0


def test_rank_is_stable_for_equal_distances():
    a = candidate("a", 37.78, -122.4194)
    b = candidate("b", 37.78, -122.4194)
    c = candidate("c", 37.78, -122.4194)
    assert [x.name for x in rank(ORIGIN, [b, a, c], limit=5)] == ["b", "a", "c"]


def test_rank_respects_limit_bounds():
    items = [candidate(f"p{i}", 37.7749 + 0.001 * i, -122.4194) for i in range(30)]
    assert len(rank(ORIGIN, items, limit=0)) == 1
    assert len(rank(ORIGIN, items, limit=100)) == 25
    for limit in range(1, 26):
        ranked = rank(ORIGIN, items, limit=limit)
        assert len(ranked) == limit
        assert all(x.distance_m <= y.distance_m for x, y in zip(ranked, ranked[1:]))


def test_clamp_limit():
    assert clamp_limit(-4) == 1
    assert clamp_limit(5) == 5
    assert clamp_limit(99) == 25


def test_preserve_order_keeps_upstream_order():
    items = [candidate("b"), candidate("a", 1.0, 1.0), candidate("c")]
    assert [c.name for c in preserve_order(items, 2)] == ["b", "a"]
