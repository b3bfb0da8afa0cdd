from __future__ import annotations

from pydantic import BaseModel, Field

from geo.aoi import BBox


class DatasetCoverage(BaseModel):
    south: float
    west: float
    north: float
    east: float

    def as_bbox(self) -> BBox:
        return BBox(south=self.south, west=self.west, north=self.north, east=self.east)


class DatasetFiles(BaseModel):
    """
    Repo-relative (or absolute) paths of the point store files.

    `tileIndex`/`tilesDir` are optional: without them the dataset is served by
    full scans of `raw`.
    """

    raw: str
    tileIndex: str | None = None
    tilesDir: str | None = None
    tilePattern: str = "nodes-chunk-{id}.json"


class DatasetConfig(BaseModel):
    id: str
    title: str
    enabled: bool = True
    description: str | None = None

    # Known coverage area; the partitioner lays its grid over this box.
    coverage: DatasetCoverage
    gridSize: int = Field(default=8, ge=1, le=64)
    cacheTtlSeconds: float = Field(default=24 * 60 * 60, gt=0.0)

    files: DatasetFiles
