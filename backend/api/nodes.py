from __future__ import annotations

import time
from dataclasses import dataclass
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Response

from api.serialize import node_to_dict, reduction_to_dict
from catalog.registry import cache_ttl_s, get_dataset, list_datasets
from cluster.points import reduce_points
from engine.cache import TtlCache
from engine.file_store import FilePointSource
from engine.query import NodeQueryService
from geo.aoi import BBox
from telemetry.singleton import record_event

router = APIRouter()


@dataclass(frozen=True)
class DatasetService:
    dataset_id: str
    service: NodeQueryService


@lru_cache(maxsize=8)
def _service(dataset_id: str) -> NodeQueryService:
    cfg = get_dataset(dataset_id).config
    return NodeQueryService(
        source=FilePointSource.from_config(cfg),
        cache=TtlCache(ttl_s=cache_ttl_s(cfg)),
    )


def reset_services() -> None:
    _service.cache_clear()


def get_dataset_service(
    dataset: str | None = Query(default=None),
) -> DatasetService:
    # Resolves the id (default dataset when omitted) and 404s on unknown ids.
    dataset_id = get_dataset(dataset).config.id
    return DatasetService(dataset_id=dataset_id, service=_service(dataset_id))


@router.get("/nodes")
def all_nodes(ds: DatasetService = Depends(get_dataset_service)):
    data = ds.service.load_all()
    return {
        "nodes": [node_to_dict(p) for p in data.points],
        "count": len(data.points),
        "source": data.source_label,
        "lastUpdated": data.last_updated,
    }


@router.get("/nodes/bounds/{south}/{west}/{north}/{east}")
def nodes_in_bounds(
    south: str,
    west: str,
    north: str,
    east: str,
    ds: DatasetService = Depends(get_dataset_service),
):
    bbox = BBox.parse(south, west, north, east)
    result = ds.service.query(bbox)
    return {
        "bounds": bbox.as_dict(),
        "nodes": [node_to_dict(p) for p in result.points],
        "count": len(result.points),
        "source": result.source_label,
    }


@router.get("/nodes/clustered/{south}/{west}/{north}/{east}")
def clustered_nodes(
    south: str,
    west: str,
    north: str,
    east: str,
    zoom: int | None = Query(default=None),
    ds: DatasetService = Depends(get_dataset_service),
):
    bbox = BBox.parse(south, west, north, east)

    t0 = time.perf_counter()
    result = ds.service.query(bbox)
    t_query_ms = (time.perf_counter() - t0) * 1000.0

    t1 = time.perf_counter()
    reduced = reduce_points(result.points, bbox, zoom=zoom)
    body = {"bounds": bbox.as_dict(), **reduction_to_dict(reduced), "source": result.source_label}
    t_reduce_ms = (time.perf_counter() - t1) * 1000.0

    record_event(
        endpoint="/nodes/clustered",
        dataset=ds.dataset_id,
        zoom=reduced.zoom,
        bbox=bbox.as_dict(),
        stats={
            "originalPointCount": reduced.original_count,
            "markers": len(reduced.markers),
            "groupCount": reduced.group_count,
            "tiled": result.tiled,
            "tilesUsed": result.tiles_used,
            "cacheHit": result.loads == 0,
            "timingsMs": {
                "query": round(t_query_ms, 2),
                "reduce": round(t_reduce_ms, 2),
                "total": round((time.perf_counter() - t0) * 1000.0, 2),
            },
        },
    )
    return body


@router.get("/stats")
def stats(ds: DatasetService = Depends(get_dataset_service)):
    data = ds.service.load_all()
    return {
        "totalNodes": len(data.points),
        "lastUpdated": data.last_updated,
        "source": data.source_label,
    }


@router.delete("/cache")
def clear_cache(ds: DatasetService = Depends(get_dataset_service)):
    ds.service.clear_cache()
    return {"message": "Cache cleared successfully", "dataset": ds.dataset_id}


@router.get("/cache/status")
def cache_status(ds: DatasetService = Depends(get_dataset_service)):
    return {"dataset": ds.dataset_id, **ds.service.cache_status()}


@router.get("/datasets")
def datasets():
    return [cfg.model_dump() for cfg in list_datasets()]


@router.get("/health")
def health():
    return Response(status_code=200)
