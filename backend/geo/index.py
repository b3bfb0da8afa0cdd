from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from shapely.geometry import Point
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.aoi import BBox
from nodes.types import NodePoint


@dataclass
class PointIndex:
    """
    STRtree-backed bbox filter over a fixed list of nodes.

    Notes:
    - Input data is lat/lng degrees; the tree stores (lng, lat) shapely points.
    - Results keep the source order of `points`.
    - Only finite coordinates are indexed: a non-finite node can never satisfy the
      inclusive bbox predicate against a finite box anyway.
    """

    points: list[NodePoint]

    _tree: STRtree = field(init=False, repr=False)
    # tree position -> position in `points`
    _positions: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        geoms: list[Point] = []
        positions: list[int] = []
        for i, p in enumerate(self.points):
            if not (math.isfinite(p.lat) and math.isfinite(p.lng)):
                continue
            geoms.append(Point(float(p.lng), float(p.lat)))
            positions.append(i)
        self._tree = STRtree(geoms)
        self._positions = positions

    def __len__(self) -> int:
        return len(self.points)

    def within(self, bbox: BBox) -> list[NodePoint]:
        """
        Nodes with `south <= lat <= north` and `west <= lng <= east`.
        """
        # shapely would normalize an inverted box; the naive predicate matches nothing.
        if bbox.is_inverted() or not self._positions:
            return []
        q = shapely_box(bbox.west, bbox.south, bbox.east, bbox.north)
        hits = sorted(self._positions[i] for i in _to_int_list(self._tree.query(q)))
        return [
            self.points[i] for i in hits if bbox.contains(self.points[i].lat, self.points[i].lng)
        ]


def build_point_index(points: Sequence[NodePoint]) -> PointIndex:
    return PointIndex(points=list(points))


def _to_int_list(idxs: Any) -> list[int]:
    if idxs is None:
        return []
    return [int(i) for i in idxs]
