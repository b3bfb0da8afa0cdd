from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from nodes.types import NodePoint

logger = logging.getLogger(__name__)

_CORE_KEYS = {"id", "lat", "lng", "lon", "osmId", "externalId"}


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def decode_nodes(raw: Any) -> list[NodePoint]:
    """
    Decode a list of node records.

    Accepted record keys:
    - `id` (required), `lat`, `lng` (or `lon`)
    - `osmId` / `externalId` (identity; falls back to `id`)
    - anything else ends up in `props`

    Records without an id or with missing or non-numeric coordinates are skipped.
    Coordinates are not range-checked.
    """
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of nodes, got {type(raw).__name__}")

    out: list[NodePoint] = []
    skipped = 0
    for rec in raw:
        if not isinstance(rec, dict):
            skipped += 1
            continue
        nid = rec.get("id")
        lat = rec.get("lat")
        lng = rec.get("lng", rec.get("lon"))
        if nid is None or lat is None or lng is None:
            skipped += 1
            continue

        try:
            lat_f, lng_f = float(lat), float(lng)
        except (TypeError, ValueError):
            skipped += 1
            continue

        ext = rec.get("externalId") or rec.get("osmId") or nid
        props = {k: v for k, v in rec.items() if k not in _CORE_KEYS}
        out.append(
            NodePoint(
                id=str(nid),
                external_id=str(ext),
                lat=lat_f,
                lng=lng_f,
                props=props,
            )
        )

    if skipped:
        logger.warning("Skipped %d node records without id or numeric coordinates", skipped)
    return out


def decode_raw_dataset(data: Any) -> tuple[list[NodePoint], str | None]:
    """
    Raw dataset file: `{"metadata": {"downloadDate": ...}, "nodes": [...]}` or a bare list.

    Returns (points, last_updated).
    """
    if isinstance(data, list):
        return decode_nodes(data), None
    if not isinstance(data, dict):
        raise ValueError("Invalid raw dataset root")
    meta = data.get("metadata") or {}
    last_updated = meta.get("downloadDate") or data.get("downloadDate")
    return decode_nodes(data.get("nodes") or []), last_updated


def encode_node(p: NodePoint) -> dict[str, Any]:
    """
    Inverse of `decode_nodes` for a single record (used when writing tile files).
    """
    return {
        "id": p.id,
        "lat": p.lat,
        "lng": p.lng,
        "osmId": p.external_id,
        **p.props,
    }
