from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from engine.cache import TtlCache
from engine.types import LoadedDataset, PointSource, QueryResult, TileIndex, TileInfo
from geo.aoi import BBox
from geo.index import PointIndex, build_point_index

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ALL_KEY = "all"
_TILE_INDEX_KEY = "tile-index"

TILED_SOURCE_LABEL = "Tile-based loading"
FULL_SCAN_SOURCE_LABEL = "Local data file (filtered by bounds)"


def intersecting_tiles(bbox: BBox, tiles: list[TileInfo]) -> list[TileInfo]:
    """
    Tiles whose bounds overlap `bbox` (plain rectangle test, edges inclusive).
    """
    return [t for t in tiles if bbox.intersects(t.bounds)]


@dataclass(frozen=True)
class _IndexedDataset:
    dataset: LoadedDataset
    index: PointIndex


@dataclass
class NodeQueryService:
    """
    Bbox -> nodes, via a read-through cache in front of a `PointSource`.

    With a tile index, only tiles overlapping the bbox are loaded; without one,
    the full dataset is loaded once (per TTL) and filtered. Both paths return
    the same node set for a given bbox.
    """

    source: PointSource
    cache: TtlCache = field(default_factory=TtlCache)

    def _cached(self, key: str, loader: Callable[[], T], counter: list[int]) -> T:
        def _load() -> T:
            counter[0] += 1
            return loader()

        return self.cache.get_or_load(key, _load)

    def _load_indexed(self) -> _IndexedDataset:
        dataset = self.source.load_all()
        return _IndexedDataset(dataset=dataset, index=build_point_index(dataset.points))

    def load_all(self) -> LoadedDataset:
        return self.cache.get_or_load(_ALL_KEY, self._load_indexed).dataset

    def tile_index(self) -> TileIndex | None:
        return self.cache.get_or_load(_TILE_INDEX_KEY, self.source.load_tile_index)

    def query(self, bbox: BBox) -> QueryResult:
        loads = [0]
        index = self._cached(_TILE_INDEX_KEY, self.source.load_tile_index, loads)

        if index is None:
            indexed: _IndexedDataset = self._cached(_ALL_KEY, self._load_indexed, loads)
            points = indexed.index.within(bbox)
            logger.debug(
                "Full scan: %d of %d nodes in bbox", len(points), len(indexed.index)
            )
            return QueryResult(
                points=points,
                source_label=FULL_SCAN_SOURCE_LABEL,
                tiled=False,
                loads=loads[0],
            )

        tiles = intersecting_tiles(bbox, index.tiles)
        points = []
        for tile in tiles:
            tile_index: PointIndex = self._cached(
                f"tile:{tile.id}",
                lambda tid=tile.id: build_point_index(self.source.load_tile(tid)),
                loads,
            )
            points.extend(tile_index.within(bbox))
        logger.debug("Tiled query: %d tiles, %d nodes in bbox", len(tiles), len(points))
        return QueryResult(
            points=points,
            source_label=TILED_SOURCE_LABEL,
            tiled=True,
            tiles_used=len(tiles),
            loads=loads[0],
        )

    def clear_cache(self) -> None:
        self.cache.invalidate()
        logger.info("Cache cleared")

    def cache_status(self) -> dict[str, Any]:
        peeked = self.cache.peek(_ALL_KEY)
        stats = self.cache.stats()
        if peeked is None:
            return {
                "cached": False,
                "cacheAgeMs": None,
                "nodeCount": 0,
                "lastUpdated": None,
                "entries": stats["entries"],
            }
        indexed, age_s = peeked
        dataset = indexed.dataset
        return {
            "cached": True,
            "cacheAgeMs": int(age_s * 1000),
            "nodeCount": len(dataset.points),
            "lastUpdated": dataset.last_updated,
            "entries": stats["entries"],
        }
