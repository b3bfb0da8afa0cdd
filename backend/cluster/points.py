from __future__ import annotations

from typing import Sequence

from cluster.policy import grouping_radius_km, zoom_for_area
from cluster.types import GroupMarker, Marker, ReductionResult, SingletonMarker
from geo.aoi import BBox
from geo.distance import haversine_km
from nodes.types import NodePoint


def group_points(points: Sequence[NodePoint], *, zoom: int) -> list[Marker]:
    """
    Greedy single-pass grouping.

    Each unconsumed node seeds a group; every later unconsumed node within the
    radius of the group's *current* centroid joins it, and the centroid is
    recomputed right away. Membership therefore depends on input order and on
    centroid drift (a node rejected early might have joined after the centroid
    moved). That's accepted: the result is deterministic for a fixed order.

    O(n^2) worst case; callers keep n small via bbox prefiltering.
    """
    radius = grouping_radius_km(zoom)
    if radius <= 0.0:
        return [SingletonMarker(point=p) for p in points]

    n = len(points)
    consumed = [False] * n
    out: list[Marker] = []

    for i in range(n):
        if consumed[i]:
            continue
        consumed[i] = True
        seed = points[i]
        members = [seed]
        sum_lat = seed.lat
        sum_lng = seed.lng
        c_lat = seed.lat
        c_lng = seed.lng

        for j in range(i + 1, n):
            if consumed[j]:
                continue
            cand = points[j]
            # NaN distance compares False, so degenerate nodes stay on their own.
            if haversine_km(c_lat, c_lng, cand.lat, cand.lng) <= radius:
                consumed[j] = True
                members.append(cand)
                sum_lat += cand.lat
                sum_lng += cand.lng
                c_lat = sum_lat / len(members)
                c_lng = sum_lng / len(members)

        if len(members) == 1:
            out.append(SingletonMarker(point=seed))
        else:
            out.append(GroupMarker(members=tuple(members), lat=c_lat, lng=c_lng))

    return out


def reduce_points(
    points: Sequence[NodePoint], bbox: BBox, *, zoom: int | None = None
) -> ReductionResult:
    """
    Group the nodes of a viewport.

    Uses the explicit `zoom` when given, otherwise infers one from the bbox area.
    """
    z = int(zoom) if zoom is not None else zoom_for_area(bbox.area_deg2)
    markers = group_points(points, zoom=z)
    return ReductionResult(
        markers=markers,
        zoom=z,
        radius_km=grouping_radius_km(z),
        original_count=len(points),
    )
