from __future__ import annotations

import math
from typing import Any

from cluster.types import GroupMarker, Marker, ReductionResult, SingletonMarker
from nodes.types import NodePoint


def _num(v: float) -> float | None:
    # JSON has no NaN/Infinity; degenerate coordinates go out as null.
    return v if math.isfinite(v) else None


def node_to_dict(p: NodePoint) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": p.id,
        "lat": _num(p.lat),
        "lng": _num(p.lng),
        "externalId": p.external_id,
    }
    for k, v in p.props.items():
        out.setdefault(k, v)
    return out


def marker_to_dict(marker: Marker, position: int) -> dict[str, Any]:
    """
    Wire shape of one marker.

    - node:    {type, id, lat, lng, externalId, ...payload, count: 1}
    - cluster: {type, id: "cluster_<position>", lat, lng, count, nodes: [{id, name, externalId}]}
    """
    if isinstance(marker, SingletonMarker):
        out = {"type": "node", **node_to_dict(marker.point)}
        out["type"] = "node"
        out["count"] = 1
        return out
    if isinstance(marker, GroupMarker):
        return {
            "type": "cluster",
            "id": f"cluster_{position}",
            "lat": _num(marker.lat),
            "lng": _num(marker.lng),
            "count": marker.count,
            "nodes": [
                {"id": p.id, "name": p.name, "externalId": p.external_id}
                for p in marker.members
            ],
        }
    raise TypeError(f"Unknown marker type: {type(marker).__name__}")


def reduction_to_dict(result: ReductionResult) -> dict[str, Any]:
    clusters = [marker_to_dict(m, i) for i, m in enumerate(result.markers)]
    return {
        "clusters": clusters,
        "count": len(clusters),
        "zoom": result.zoom,
        "clusterDistanceKm": result.radius_km,
        "originalPointCount": result.original_count,
        "groupCount": result.group_count,
        "singletonCount": result.singleton_count,
    }
