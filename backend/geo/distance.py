from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in kilometers on a spherical earth.

    No validation: NaN or infinite inputs yield NaN.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    try:
        a = (
            math.sin(d_lat / 2.0) ** 2
            + math.cos(math.radians(lat1))
            * math.cos(math.radians(lat2))
            * math.sin(d_lng / 2.0) ** 2
        )
    except ValueError:
        # sin/cos of an infinity
        return math.nan
    # Rounding (or out-of-range latitudes) can push `a` outside [0, 1].
    # Plain comparisons keep NaN as NaN.
    if a > 1.0:
        a = 1.0
    elif a < 0.0:
        a = 0.0
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c
