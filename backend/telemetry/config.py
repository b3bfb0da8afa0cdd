from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from catalog.registry import resolve_data_path

_OFF_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class TelemetrySettings:
    enabled: bool
    path: Path
    flush_every_s: float = 0.5
    batch_size: int = 250
    # 0 means unbounded.
    max_queue: int = 10_000


def _env_number(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        v = float(raw)
    except ValueError:
        return default
    return v if v >= 0 else default


def load_settings() -> TelemetrySettings:
    """
    Read telemetry settings from the environment.

    NODEMAP_TELEMETRY            on unless set to 0/false/no/off
    NODEMAP_TELEMETRY_PATH       DuckDB file (default <data root>/data/telemetry/telemetry.duckdb)
    NODEMAP_TELEMETRY_FLUSH_MS   writer flush interval
    NODEMAP_TELEMETRY_MAX_QUEUE  events buffered before new ones are dropped
    """
    enabled = (os.getenv("NODEMAP_TELEMETRY") or "1").strip().lower() not in _OFF_VALUES
    raw_path = (os.getenv("NODEMAP_TELEMETRY_PATH") or "").strip()
    path = Path(raw_path) if raw_path else resolve_data_path("data/telemetry/telemetry.duckdb")
    return TelemetrySettings(
        enabled=enabled,
        path=path,
        flush_every_s=_env_number("NODEMAP_TELEMETRY_FLUSH_MS", 500.0) / 1000.0,
        max_queue=int(_env_number("NODEMAP_TELEMETRY_MAX_QUEUE", 10_000)),
    )
