from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NodePoint:
    """
    A single map node (point of interest).

    `external_id` is the identity key (OSM id for the cycling node datasets).
    `id` is the application-level reference and may repeat across distinct nodes,
    so never dedupe or key caches on it alone.
    """

    id: str
    external_id: str
    lat: float
    lng: float
    # Opaque payload (name, ref, network, operator, ...) carried through untouched.
    props: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.props.get("name")
