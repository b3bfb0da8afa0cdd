from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from catalog.types import DatasetConfig

DEFAULT_DATASET_ID = "netherlands"


class UnknownDatasetError(KeyError):
    pass


def _repo_root() -> Path:
    # .../backend/catalog/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def _datasets_root() -> Path:
    raw = (os.getenv("NODEMAP_DATASETS_DIR") or "").strip()
    return Path(raw) if raw else _repo_root() / "datasets"


def _data_root() -> Path:
    raw = (os.getenv("NODEMAP_DATA_ROOT") or "").strip()
    return Path(raw) if raw else _repo_root()


@dataclass(frozen=True)
class DatasetEntry:
    config: DatasetConfig
    # Absolute path to dataset.yaml on disk (useful for debugging).
    path: Path


def _iter_dataset_yaml_files() -> Iterable[Path]:
    root = _datasets_root()
    if not root.exists():
        return []
    # Convention: datasets/*/dataset.yaml
    return root.glob("*/dataset.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid dataset yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, DatasetEntry]:
    out: dict[str, DatasetEntry] = {}
    for p in sorted(_iter_dataset_yaml_files(), key=lambda x: str(x)):
        cfg = DatasetConfig.model_validate(_load_yaml(p))
        if not cfg.enabled:
            continue
        if cfg.id in out:
            raise ValueError(f"Duplicate dataset id '{cfg.id}': {p}")
        out[cfg.id] = DatasetEntry(config=cfg, path=p)
    return out


def default_dataset_id() -> str:
    reg = get_registry()
    env = (os.getenv("NODEMAP_DATASET") or "").strip()
    if env:
        return env
    if DEFAULT_DATASET_ID in reg or not reg:
        return DEFAULT_DATASET_ID
    # Fall back to stable ordering.
    return next(iter(reg.keys()))


def list_datasets() -> list[DatasetConfig]:
    return [e.config for e in get_registry().values()]


def get_dataset(dataset_id: str | None) -> DatasetEntry:
    reg = get_registry()
    did = (dataset_id or "").strip() or default_dataset_id()
    entry = reg.get(did)
    if entry is None:
        raise UnknownDatasetError(did)
    return entry


def resolve_data_path(path: str) -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    return _data_root() / p


def cache_ttl_s(cfg: DatasetConfig) -> float:
    raw = (os.getenv("NODEMAP_CACHE_TTL_S") or "").strip()
    if raw:
        try:
            v = float(raw)
            if v > 0:
                return v
        except ValueError:
            pass
    return float(cfg.cacheTtlSeconds)


def clear_registry_cache() -> None:
    """
    Clear the in-memory dataset registry.

    Dataset YAML changes are otherwise not picked up until the process restarts.
    """
    get_registry.cache_clear()
