from __future__ import annotations

from fastapi import APIRouter, Query

from telemetry.singleton import get_store, reset_store

router = APIRouter(prefix="/telemetry")


@router.get("/summary")
def telemetry_summary(
    dataset: str | None = None,
    endpoint: str | None = None,
    sinceMs: int | None = None,
):
    store = get_store()
    if store is None:
        return []
    return store.summary(dataset=dataset, endpoint=endpoint, since_ms=sinceMs)


@router.get("/slowest")
def telemetry_slowest(
    dataset: str | None = None,
    endpoint: str | None = None,
    limit: int = Query(default=25, ge=1, le=200),
):
    store = get_store()
    if store is None:
        return []
    return store.slowest(dataset=dataset, endpoint=endpoint, limit=limit)


@router.delete("")
def telemetry_reset():
    reset_store()
    return {"message": "Telemetry reset"}
