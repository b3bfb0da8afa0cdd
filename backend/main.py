import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.nodes import router as nodes_router
from api.telemetry import router as telemetry_router
from catalog.registry import UnknownDatasetError
from engine.errors import PointStoreError
from geo.aoi import InvalidBoundsError

logging.basicConfig(
    level=(os.getenv("NODEMAP_LOG_LEVEL") or "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("nodemap")

app = FastAPI(title="nodemap")


def _cors_origins() -> list[str]:
    raw = (os.getenv("NODEMAP_CORS_ORIGINS") or "*").strip()
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(nodes_router, prefix="/api")
app.include_router(telemetry_router, prefix="/api")


@app.exception_handler(InvalidBoundsError)
async def invalid_bounds_handler(request: Request, exc: InvalidBoundsError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid bounds parameters", "message": str(exc)},
    )


@app.exception_handler(UnknownDatasetError)
async def unknown_dataset_handler(request: Request, exc: UnknownDatasetError):
    dataset_id = exc.args[0] if exc.args else ""
    return JSONResponse(
        status_code=404,
        content={"error": "Unknown dataset", "message": f"No dataset '{dataset_id}'"},
    )


@app.exception_handler(PointStoreError)
async def point_store_handler(request: Request, exc: PointStoreError):
    logger.error("Point store unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"error": "Point store unavailable", "message": str(exc)},
    )
