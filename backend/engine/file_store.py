from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from engine.errors import PointStoreError
from engine.types import LoadedDataset, PointSource, TileIndex, TileInfo
from geo.aoi import BBox
from nodes.loaders import decode_nodes, decode_raw_dataset, read_json
from nodes.types import NodePoint

if TYPE_CHECKING:
    from catalog.types import DatasetConfig

logger = logging.getLogger(__name__)

DEFAULT_TILE_PATTERN = "nodes-chunk-{id}.json"


@dataclass(frozen=True)
class FilePointSource(PointSource):
    """
    JSON files on local disk:

    - raw dataset:  {"metadata": {"downloadDate": ...}, "nodes": [...]}
    - tile index:   {"totalChunks": N, "chunks": [{"id", "bounds": [s, w, n, e], "nodeCount"}]}
    - tile files:   {"id", "bounds", "nodes": [...], "count"} under `tiles_dir`
    """

    raw_path: Path
    index_path: Path | None = None
    tiles_dir: Path | None = None
    tile_pattern: str = DEFAULT_TILE_PATTERN
    source_label: str = "Local data file"

    @classmethod
    def from_config(cls, cfg: "DatasetConfig") -> "FilePointSource":
        from catalog.registry import resolve_data_path

        files = cfg.files
        return cls(
            raw_path=resolve_data_path(files.raw),
            index_path=resolve_data_path(files.tileIndex) if files.tileIndex else None,
            tiles_dir=resolve_data_path(files.tilesDir) if files.tilesDir else None,
            tile_pattern=files.tilePattern,
            source_label=f"{cfg.title} (local data file)",
        )

    def load_all(self) -> LoadedDataset:
        try:
            data = read_json(self.raw_path)
            points, last_updated = decode_raw_dataset(data)
        except (OSError, json.JSONDecodeError, ValueError, TypeError) as e:
            raise PointStoreError(f"Failed to load raw data {self.raw_path}: {e}") from e
        logger.info("Loaded %d nodes from %s", len(points), self.raw_path)
        return LoadedDataset(
            points=points, source_label=self.source_label, last_updated=last_updated
        )

    def load_tile_index(self) -> TileIndex | None:
        if self.index_path is None or self.tiles_dir is None:
            return None
        if not self.index_path.exists():
            logger.warning(
                "No tile index at %s, falling back to full dataset scans", self.index_path
            )
            return None
        try:
            data = read_json(self.index_path)
            tiles = [_decode_tile_info(c) for c in (data.get("chunks") or [])]
        except (OSError, json.JSONDecodeError, ValueError, TypeError, KeyError, AttributeError) as e:
            raise PointStoreError(f"Invalid tile index {self.index_path}: {e}") from e
        return TileIndex(tiles=tiles, last_updated=data.get("lastUpdated"))

    def load_tile(self, tile_id: str) -> list[NodePoint]:
        if self.tiles_dir is None:
            raise PointStoreError("Source has no tiles directory")
        path = self.tiles_dir / self.tile_pattern.format(id=tile_id)
        try:
            data = read_json(path)
            if isinstance(data, list):
                return decode_nodes(data)
            return decode_nodes(data.get("nodes") or [])
        except (OSError, json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            raise PointStoreError(f"Failed to load tile {tile_id} from {path}: {e}") from e


def _decode_tile_info(raw: dict) -> TileInfo:
    s, w, n, e = (float(v) for v in raw["bounds"])
    count = raw.get("nodeCount")
    return TileInfo(
        id=str(raw["id"]),
        bounds=BBox(south=s, west=w, north=n, east=e),
        node_count=int(count) if count is not None else None,
    )
