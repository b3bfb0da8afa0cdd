from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, Union

from nodes.types import NodePoint


@dataclass(frozen=True)
class SingletonMarker:
    point: NodePoint

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def lng(self) -> float:
        return self.point.lng

    @property
    def count(self) -> int:
        return 1

    @property
    def members(self) -> tuple[NodePoint, ...]:
        return (self.point,)


@dataclass(frozen=True)
class GroupMarker:
    """
    Two or more nodes merged into one marker.

    `lat`/`lng` is the arithmetic mean of the members' coordinates.
    """

    members: tuple[NodePoint, ...]
    lat: float
    lng: float

    @property
    def count(self) -> int:
        return len(self.members)


Marker: TypeAlias = Union[SingletonMarker, GroupMarker]


@dataclass(frozen=True)
class ReductionResult:
    markers: list[Marker]
    zoom: int
    radius_km: float
    original_count: int

    @property
    def group_count(self) -> int:
        return sum(1 for m in self.markers if isinstance(m, GroupMarker))

    @property
    def singleton_count(self) -> int:
        return sum(1 for m in self.markers if isinstance(m, SingletonMarker))
