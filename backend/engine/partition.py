from __future__ import annotations

import json
import logging
import math
import sys
from dataclasses import dataclass
from typing import Sequence

from engine.errors import PointStoreError
from geo.aoi import BBox
from nodes.loaders import encode_node
from nodes.types import NodePoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tile:
    id: str
    bounds: BBox
    points: list[NodePoint]


def data_extent(points: Sequence[NodePoint]) -> BBox | None:
    lats = [p.lat for p in points if math.isfinite(p.lat) and math.isfinite(p.lng)]
    lngs = [p.lng for p in points if math.isfinite(p.lat) and math.isfinite(p.lng)]
    if not lats:
        return None
    return BBox(south=min(lats), west=min(lngs), north=max(lats), east=max(lngs))


def _grow(coverage: BBox, extent: BBox | None) -> BBox:
    if extent is None:
        return coverage
    return BBox(
        south=min(coverage.south, extent.south),
        west=min(coverage.west, extent.west),
        north=max(coverage.north, extent.north),
        east=max(coverage.east, extent.east),
    )


def _cell(value: float, origin: float, step: float, grid_size: int) -> int:
    if step <= 0.0:
        return 0
    i = int(math.floor((value - origin) / step))
    # The far edge (north/east) belongs to the last cell.
    return max(0, min(grid_size - 1, i))


def partition_points(
    points: Sequence[NodePoint], coverage: BBox | None, *, grid_size: int = 8
) -> list[Tile]:
    """
    Split nodes into a uniform `grid_size` x `grid_size` grid of tiles.

    - Tile ids are "<row>_<col>", rows counted from the south, columns from the west.
    - Each finite node lands in exactly one tile (interior edges go to the higher cell),
      so tiles are disjoint and need no cross-tile dedup at query time.
    - Coverage grows to the data extent; nodes are never dropped for being outside it.
    - Non-finite nodes are not stored: no finite bbox can ever match them.
    """
    if grid_size < 1:
        raise ValueError("grid_size must be >= 1")

    extent = data_extent(points)
    cov = _grow(coverage, extent) if coverage is not None else extent
    if cov is None:
        return []

    lat_step = (cov.north - cov.south) / grid_size
    lng_step = (cov.east - cov.west) / grid_size

    buckets: dict[tuple[int, int], list[NodePoint]] = {}
    for p in points:
        if not (math.isfinite(p.lat) and math.isfinite(p.lng)):
            continue
        row = _cell(p.lat, cov.south, lat_step, grid_size)
        col = _cell(p.lng, cov.west, lng_step, grid_size)
        buckets.setdefault((row, col), []).append(p)

    out: list[Tile] = []
    for row in range(grid_size):
        for col in range(grid_size):
            bounds = BBox(
                south=cov.south + row * lat_step,
                west=cov.west + col * lng_step,
                north=cov.south + (row + 1) * lat_step,
                east=cov.west + (col + 1) * lng_step,
            )
            # Pin the outer edges to the coverage box (float steps can fall short).
            if row == grid_size - 1:
                bounds = BBox(bounds.south, bounds.west, cov.north, bounds.east)
            if col == grid_size - 1:
                bounds = BBox(bounds.south, bounds.west, bounds.north, cov.east)
            members = buckets.get((row, col), [])
            # Floor rounding may put an edge node one ulp outside its cell.
            bounds = _grow(bounds, data_extent(members))
            out.append(Tile(id=f"{row}_{col}", bounds=bounds, points=members))
    return out


def write_partitioned(dataset_id: str | None = None) -> int:
    """
    Read a dataset's raw file and write its tile index plus one JSON file per tile.

    Returns the number of tiles written.
    """
    # Lazily import to keep the engine free of catalog/config imports.
    from catalog.registry import get_dataset, resolve_data_path
    from engine.file_store import FilePointSource

    cfg = get_dataset(dataset_id).config
    source = FilePointSource.from_config(cfg)
    dataset = source.load_all()

    tiles = partition_points(dataset.points, cfg.coverage.as_bbox(), grid_size=cfg.gridSize)

    tiles_dir = resolve_data_path(cfg.files.tilesDir)
    index_path = resolve_data_path(cfg.files.tileIndex)
    try:
        tiles_dir.mkdir(parents=True, exist_ok=True)
        for t in tiles:
            b = t.bounds
            payload = {
                "id": t.id,
                "bounds": [b.south, b.west, b.north, b.east],
                "nodes": [encode_node(p) for p in t.points],
                "count": len(t.points),
            }
            (tiles_dir / cfg.files.tilePattern.format(id=t.id)).write_text(
                json.dumps(payload, ensure_ascii=False), encoding="utf-8"
            )

        index = {
            "totalChunks": len(tiles),
            "chunks": [
                {
                    "id": t.id,
                    "bounds": [t.bounds.south, t.bounds.west, t.bounds.north, t.bounds.east],
                    "nodeCount": len(t.points),
                }
                for t in tiles
            ],
            "lastUpdated": dataset.last_updated,
        }
        index_path.parent.mkdir(parents=True, exist_ok=True)
        index_path.write_text(json.dumps(index, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        raise PointStoreError(f"Failed to write tiles for dataset '{cfg.id}': {e}") from e

    logger.info(
        "Partitioned %d nodes of '%s' into %d tiles", len(dataset.points), cfg.id, len(tiles)
    )
    return len(tiles)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    write_partitioned(sys.argv[1] if len(sys.argv) > 1 else None)
