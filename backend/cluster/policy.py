from __future__ import annotations

# Zoom at which every node is shown individually.
DETAIL_ZOOM = 11

# zoom -> grouping radius (km); the entry with the largest key <= zoom applies.
_RADIUS_KM_BY_ZOOM: dict[int, float] = {
    0: 100.0,  # country
    3: 75.0,  # several provinces
    5: 50.0,  # province
    7: 30.0,  # region
    9: 15.0,  # city
    10: 10.0,  # last grouping level
}
_FALLBACK_RADIUS_KM = 50.0

# (min area in deg², zoom), checked top-down.
_ZOOM_BY_AREA: tuple[tuple[float, int], ...] = (
    (100.0, 0),
    (25.0, 3),
    (4.0, 5),
    (1.0, 7),
    (0.25, 9),
    (0.1, 10),
)


def inferred_zoom(south: float, west: float, north: float, east: float) -> int:
    """
    Estimate a zoom level from the bbox area in square degrees.

    This is a coarse heuristic, not a projection-aware zoom: a degree of longitude
    shrinks towards the poles and the map's pixel size is ignored. Good enough to
    pick a grouping radius when the client doesn't send its zoom.
    """
    return zoom_for_area((north - south) * (east - west))


def zoom_for_area(area_deg2: float) -> int:
    for min_area, zoom in _ZOOM_BY_AREA:
        if area_deg2 > min_area:
            return zoom
    return DETAIL_ZOOM


def grouping_radius_km(zoom: int) -> float:
    if zoom >= DETAIL_ZOOM:
        return 0.0
    for key in sorted(_RADIUS_KM_BY_ZOOM, reverse=True):
        if zoom >= key:
            return _RADIUS_KM_BY_ZOOM[key]
    # Only reachable for negative zooms.
    return _FALLBACK_RADIUS_KM
