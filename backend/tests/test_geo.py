from __future__ import annotations

import math

import pytest

from geo.aoi import BBox, InvalidBoundsError
from geo.distance import haversine_km
from geo.index import build_point_index
from nodes.types import NodePoint


def _pt(i: int, lat: float, lng: float) -> NodePoint:
    return NodePoint(id=str(i), external_id=f"osm-{i}", lat=lat, lng=lng)


def test_haversine_known_distances():
    assert haversine_km(52.0, 5.0, 52.0, 5.0) == 0.0
    # One degree of latitude on a 6371 km sphere.
    assert math.isclose(haversine_km(52.0, 5.0, 53.0, 5.0), 111.195, rel_tol=1e-4)
    # Amsterdam -> Utrecht, roughly 35 km.
    d = haversine_km(52.3676, 4.9041, 52.0907, 5.1214)
    assert 33.0 < d < 36.0


def test_haversine_propagates_nan():
    assert math.isnan(haversine_km(float("nan"), 5.0, 52.0, 5.0))
    assert math.isnan(haversine_km(float("inf"), 5.0, 52.0, 5.0))


def test_bbox_parse_accepts_numeric_strings():
    b = BBox.parse("50.7", "3.2", "53.7", "7.3")
    assert b == BBox(south=50.7, west=3.2, north=53.7, east=7.3)
    assert math.isclose(b.area_deg2, 12.3)


@pytest.mark.parametrize(
    "values",
    [
        ("abc", "3.2", "53.7", "7.3"),
        ("50.7", "", "53.7", "7.3"),
        ("50.7", "3.2", "nan", "7.3"),
        ("50.7", "3.2", "53.7", "inf"),
        (None, 3.2, 53.7, 7.3),
    ],
)
def test_bbox_parse_rejects_non_finite_values(values):
    with pytest.raises(InvalidBoundsError):
        BBox.parse(*values)


def test_bbox_contains_is_inclusive():
    b = BBox(south=52.0, west=5.0, north=52.1, east=5.1)
    assert b.contains(52.0, 5.0)
    assert b.contains(52.1, 5.1)
    assert not b.contains(52.1000001, 5.05)
    assert not b.contains(float("nan"), 5.05)


def test_bbox_intersects_touching_edges():
    a = BBox(south=52.0, west=5.0, north=52.1, east=5.1)
    assert a.intersects(BBox(south=52.0, west=5.1, north=52.1, east=5.2))
    assert a.intersects(BBox(south=52.1, west=5.1, north=52.2, east=5.2))
    assert not a.intersects(BBox(south=52.0, west=5.11, north=52.1, east=5.2))
    assert not a.intersects(BBox(south=53.0, west=10.0, north=54.0, east=11.0))


def test_point_index_keeps_source_order_and_inclusive_edges():
    pts = [
        _pt(0, 52.05, 5.05),
        _pt(1, 53.0, 6.0),
        _pt(2, 52.0, 5.0),  # on the south-west corner
        _pt(3, 52.1, 5.1),  # on the north-east corner
    ]
    index = build_point_index(pts)
    got = index.within(BBox(south=52.0, west=5.0, north=52.1, east=5.1))
    assert [p.external_id for p in got] == ["osm-0", "osm-2", "osm-3"]


def test_point_index_skips_non_finite_points():
    pts = [_pt(0, float("nan"), 5.0), _pt(1, 52.05, float("inf")), _pt(2, 52.05, 5.05)]
    index = build_point_index(pts)
    assert len(index) == 3
    got = index.within(BBox(south=-90, west=-180, north=90, east=180))
    assert [p.external_id for p in got] == ["osm-2"]


def test_point_index_inverted_box_matches_nothing():
    index = build_point_index([_pt(0, 52.05, 5.05)])
    assert index.within(BBox(south=52.1, west=5.0, north=52.0, east=5.1)) == []
    assert index.within(BBox(south=52.0, west=5.1, north=52.1, east=5.0)) == []


def test_point_index_empty():
    assert build_point_index([]).within(BBox(0, 0, 1, 1)) == []
