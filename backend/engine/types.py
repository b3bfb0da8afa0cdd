from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from geo.aoi import BBox
from nodes.types import NodePoint


@dataclass(frozen=True)
class LoadedDataset:
    """
    The whole point set of a source, as loaded from backing storage.
    """

    points: list[NodePoint]
    source_label: str
    last_updated: str | None = None


@dataclass(frozen=True)
class TileInfo:
    id: str
    bounds: BBox
    node_count: int | None = None


@dataclass(frozen=True)
class TileIndex:
    tiles: list[TileInfo]
    last_updated: str | None = None


@dataclass(frozen=True)
class QueryResult:
    """
    What the query service returns for a bbox.
    """

    points: list[NodePoint]
    source_label: str
    # True when served from tiles, False for the full-scan fallback.
    tiled: bool
    tiles_used: int = 0
    # Backing-store loads performed for this query (0 = fully served from cache).
    loads: int = 0


class PointSource(Protocol):
    """
    Backing point store.

    - FilePointSource: JSON files (raw dataset + optional tile index/tile files)
    - InMemoryPointSource: a list of nodes, optionally grid-partitioned
    """

    def load_all(self) -> LoadedDataset: ...

    def load_tile_index(self) -> TileIndex | None:
        """Return None when the source isn't partitioned."""
        ...

    def load_tile(self, tile_id: str) -> list[NodePoint]: ...
