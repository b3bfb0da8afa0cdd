from __future__ import annotations

import math
from dataclasses import dataclass


class InvalidBoundsError(ValueError):
    """Raised when a bounding box component is missing or not a finite number."""


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lat/lng degrees.

    Convention used throughout this repo:
    - south, west, north, east

    Boxes are taken as given: no normalization and no antimeridian wraparound.
    An inverted box (south > north or west > east) simply matches nothing.
    """

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def parse(cls, south, west, north, east) -> "BBox":
        """
        Build a box from raw request values (usually path strings).

        Every component must parse as a finite float.
        """
        raw = {"south": south, "west": west, "north": north, "east": east}
        values: dict[str, float] = {}
        for name, v in raw.items():
            try:
                f = float(v)
            except (TypeError, ValueError):
                raise InvalidBoundsError(f"{name}={v!r} is not a number") from None
            if not math.isfinite(f):
                raise InvalidBoundsError(f"{name}={v!r} is not a finite number")
            values[name] = f
        return cls(**values)

    @property
    def area_deg2(self) -> float:
        return (self.north - self.south) * (self.east - self.west)

    def contains(self, lat: float, lng: float) -> bool:
        # Inclusive on all edges; NaN never matches.
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def intersects(self, other: "BBox") -> bool:
        return not (
            self.east < other.west
            or self.west > other.east
            or self.north < other.south
            or self.south > other.north
        )

    def is_inverted(self) -> bool:
        return self.south > self.north or self.west > self.east

    def as_dict(self) -> dict[str, float]:
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }
