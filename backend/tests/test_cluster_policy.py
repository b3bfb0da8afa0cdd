from __future__ import annotations

from cluster.policy import DETAIL_ZOOM, grouping_radius_km, inferred_zoom, zoom_for_area


def test_inferred_zoom_for_netherlands_bbox_is_province_level():
    # area ~ 3.0 * 4.1 = 12.3 deg² -> ">4" bracket
    assert inferred_zoom(50.7, 3.2, 53.7, 7.3) == 5


def test_inferred_zoom_thresholds():
    assert inferred_zoom(0, 0, 20, 20) == 0  # 400
    assert inferred_zoom(0, 0, 10, 10) == 3  # exactly 100 is not > 100
    assert inferred_zoom(0, 0, 5, 6) == 3  # 30
    assert inferred_zoom(0, 0, 2, 3) == 5  # 6
    assert inferred_zoom(0, 0, 1, 2) == 7  # 2
    assert inferred_zoom(0, 0, 0.5, 1) == 9  # 0.5
    assert inferred_zoom(0, 0, 0.4, 0.4) == 10  # 0.16
    assert inferred_zoom(0, 0, 0.1, 0.1) == DETAIL_ZOOM  # 0.01


def test_inferred_zoom_inverted_box_is_detail_level():
    # Negative area: naive math, no wraparound handling.
    assert inferred_zoom(0, 170, 10, -170) == DETAIL_ZOOM


def test_grouping_radius_table_lookup():
    assert grouping_radius_km(0) == 100.0
    assert grouping_radius_km(2) == 100.0
    assert grouping_radius_km(3) == 75.0
    assert grouping_radius_km(5) == 50.0
    assert grouping_radius_km(8) == 30.0
    assert grouping_radius_km(9) == 15.0
    assert grouping_radius_km(10) == 10.0


def test_grouping_radius_is_zero_from_detail_zoom():
    for z in range(DETAIL_ZOOM, 22):
        assert grouping_radius_km(z) == 0.0


def test_grouping_radius_is_non_increasing():
    radii = [grouping_radius_km(z) for z in range(0, 20)]
    assert all(a >= b for a, b in zip(radii, radii[1:]))


def test_grouping_radius_negative_zoom_falls_back():
    assert grouping_radius_km(-1) == 50.0


def test_zoom_for_area_matches_inferred_zoom():
    for box in [(0, 0, 20, 20), (50.7, 3.2, 53.7, 7.3), (0, 0, 0.5, 1), (52.0, 5.0, 52.2, 5.2)]:
        area = (box[2] - box[0]) * (box[3] - box[1])
        assert zoom_for_area(area) == inferred_zoom(*box)
