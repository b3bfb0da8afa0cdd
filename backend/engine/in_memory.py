from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from engine.errors import PointStoreError
from engine.partition import Tile, partition_points
from engine.types import LoadedDataset, PointSource, TileIndex, TileInfo
from geo.aoi import BBox
from nodes.types import NodePoint


@dataclass
class InMemoryPointSource(PointSource):
    """
    Serves a fixed list of nodes, optionally grid-partitioned into tiles.

    Counts backing loads so callers (and tests) can see cache behaviour.
    """

    points: list[NodePoint]
    tiles: list[Tile] | None = None
    source_label: str = "In-memory nodes"
    last_updated: str | None = None
    load_counts: dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def partitioned(
        cls,
        points: Sequence[NodePoint],
        *,
        coverage: BBox | None = None,
        grid_size: int = 8,
    ) -> "InMemoryPointSource":
        pts = list(points)
        return cls(points=pts, tiles=partition_points(pts, coverage, grid_size=grid_size))

    def _count(self, key: str) -> None:
        self.load_counts[key] = self.load_counts.get(key, 0) + 1

    def load_all(self) -> LoadedDataset:
        self._count("all")
        return LoadedDataset(
            points=list(self.points),
            source_label=self.source_label,
            last_updated=self.last_updated,
        )

    def load_tile_index(self) -> TileIndex | None:
        self._count("index")
        if self.tiles is None:
            return None
        return TileIndex(
            tiles=[
                TileInfo(id=t.id, bounds=t.bounds, node_count=len(t.points))
                for t in self.tiles
            ],
            last_updated=self.last_updated,
        )

    def load_tile(self, tile_id: str) -> list[NodePoint]:
        self._count(f"tile:{tile_id}")
        for t in self.tiles or []:
            if t.id == tile_id:
                return list(t.points)
        raise PointStoreError(f"Unknown tile: {tile_id}")
