import pytest

from app.utils.geo import BoundingBox, haversine_distance, point_in_polygon

OAK_RIDGE = BoundingBox(min_lat=35.95, max_lat=36.05, min_lon=-84.35, max_lon=-84.25)


def test_haversine_zero_for_same_point():
    assert haversine_distance(36.0, -84.3, 36.0, -84.3) == 0


def test_haversine_small_offset_is_about_eleven_meters():
    # 0.0001 degrees of latitude is roughly 11.1 m
    assert haversine_distance(36.0, -84.3, 36.0001, -84.3) == pytest.approx(11.12, abs=0.05)


def test_haversine_is_symmetric():
    a = haversine_distance(36.0, -84.3, 36.0001, -84.3001)
    b = haversine_distance(36.0001, -84.3001, 36.0, -84.3)
    assert a == b


def test_bounding_box_bounds_are_inclusive():
    assert OAK_RIDGE.contains(35.95, -84.35)
    assert OAK_RIDGE.contains(36.05, -84.25)
    assert not OAK_RIDGE.contains(36.0501, -84.3)
    assert not OAK_RIDGE.contains(36.0, -84.2499)


def test_bounding_box_polygon_is_closed_ring():
    ring = OAK_RIDGE.as_polygon()
    assert ring[0] == ring[-1]
    assert len(ring) == 5


@pytest.mark.parametrize(
    "lat, lon, expected",
    [
        (36.0, -84.3, True),
        (35.95, -84.3, True),   # on southern edge
        (35.95, -84.35, True),  # on a vertex
        (36.1, -84.3, False),
        (36.0, -84.4, False),
    ],
)
def test_point_in_box_polygon(lat, lon, expected):
    assert point_in_polygon(lat, lon, OAK_RIDGE.as_polygon()) is expected


def test_point_in_concave_polygon():
    # L-shaped ring (lon, lat): the notch at the top right is outside
    ring = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
    assert point_in_polygon(0.5, 0.5, ring)
    assert point_in_polygon(1.5, 0.5, ring)
    assert not point_in_polygon(1.5, 1.5, ring)


def test_degenerate_polygon_contains_nothing():
    assert not point_in_polygon(0, 0, [(0, 0), (1, 1)])


def test_open_ring_matches_closed_ring():
    closed = OAK_RIDGE.as_polygon()
    assert point_in_polygon(36.0, -84.3, closed[:-1])
    assert not point_in_polygon(36.1, -84.3, closed[:-1])
