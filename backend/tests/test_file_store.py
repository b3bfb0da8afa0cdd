from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from catalog.registry import clear_registry_cache
from engine.errors import PointStoreError
from engine.file_store import FilePointSource
from engine.partition import write_partitioned
from engine.query import NodeQueryService
from geo.aoi import BBox

SAMPLE = Path(__file__).resolve().parents[2] / "data" / "sample"


def _sample_source(**overrides) -> FilePointSource:
    kwargs = dict(
        raw_path=SAMPLE / "raw-nodes-data.json",
        index_path=SAMPLE / "nodes-chunk-index.json",
        tiles_dir=SAMPLE / "chunks",
    )
    kwargs.update(overrides)
    return FilePointSource(**kwargs)


def test_load_all_reads_raw_dataset():
    data = _sample_source().load_all()
    assert len(data.points) == 8
    assert data.last_updated == "2025-06-01T12:00:00.000Z"
    first = data.points[0]
    assert (first.id, first.external_id, first.lat, first.lng) == ("1", "1001", 52.02, 5.02)
    assert first.props["network"] == "rcn"
    assert "osmId" not in first.props


def test_sample_reuses_ids_for_distinct_nodes():
    pts = _sample_source().load_all().points
    twelves = [p for p in pts if p.id == "12"]
    assert [p.external_id for p in twelves] == ["1005", "1007"]


def test_load_tile_index_and_tile():
    src = _sample_source()
    index = src.load_tile_index()
    assert index is not None
    assert [t.id for t in index.tiles] == ["0_0", "0_1", "1_0", "1_1"]
    assert index.tiles[0].bounds == BBox(52.0, 5.0, 52.1, 5.1)
    assert [p.external_id for p in src.load_tile("0_0")] == ["1001", "1002", "1003"]


def test_missing_index_means_no_tiles(tmp_path):
    src = _sample_source(index_path=tmp_path / "missing.json")
    assert src.load_tile_index() is None

    svc = NodeQueryService(source=src)
    result = svc.query(BBox(52.0, 5.0, 52.1, 5.1))
    assert result.tiled is False
    assert len(result.points) == 3


def test_malformed_index_is_an_error(tmp_path):
    bad = tmp_path / "index.json"
    bad.write_text('{"chunks": [{"id": "0_0", "bounds": [1, 2]}]}', encoding="utf-8")
    with pytest.raises(PointStoreError):
        _sample_source(index_path=bad).load_tile_index()


def test_missing_raw_file_raises(tmp_path):
    src = FilePointSource(raw_path=tmp_path / "nope.json")
    with pytest.raises(PointStoreError):
        src.load_all()


def test_unparsable_raw_file_raises(tmp_path):
    raw = tmp_path / "raw.json"
    raw.write_text("{not json", encoding="utf-8")
    with pytest.raises(PointStoreError):
        FilePointSource(raw_path=raw).load_all()


def test_missing_tile_file_raises(tmp_path):
    src = _sample_source(tiles_dir=tmp_path)
    with pytest.raises(PointStoreError):
        src.load_tile("0_0")


def test_bare_list_raw_file(tmp_path):
    raw = tmp_path / "raw.json"
    raw.write_text(
        json.dumps(
            [
                {"id": "a", "lat": 52.0, "lon": 5.0},
                {"id": "b", "lat": 52.1, "lng": 5.1, "externalId": "x-b"},
                {"id": "c", "name": "no coordinates"},
            ]
        ),
        encoding="utf-8",
    )
    data = FilePointSource(raw_path=raw).load_all()
    assert [(p.id, p.external_id) for p in data.points] == [("a", "a"), ("b", "x-b")]
    assert data.last_updated is None


def test_write_partitioned_matches_full_scan(tmp_path, monkeypatch):
    shutil.copy(SAMPLE / "raw-nodes-data.json", tmp_path / "raw.json")
    ds_dir = tmp_path / "datasets" / "tmp"
    ds_dir.mkdir(parents=True)
    (ds_dir / "dataset.yaml").write_text(
        "\n".join(
            [
                "id: tmp",
                "title: Temporary",
                "coverage: {south: 52.0, west: 5.0, north: 52.2, east: 5.2}",
                "gridSize: 3",
                "files:",
                "  raw: raw.json",
                "  tileIndex: index.json",
                "  tilesDir: tiles",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("NODEMAP_DATASETS_DIR", str(tmp_path / "datasets"))
    monkeypatch.setenv("NODEMAP_DATA_ROOT", str(tmp_path))
    clear_registry_cache()

    assert write_partitioned("tmp") == 9
    index = json.loads((tmp_path / "index.json").read_text(encoding="utf-8"))
    assert index["totalChunks"] == 9
    assert sum(c["nodeCount"] for c in index["chunks"]) == 8

    tiled = NodeQueryService(
        source=FilePointSource(
            raw_path=tmp_path / "raw.json",
            index_path=tmp_path / "index.json",
            tiles_dir=tmp_path / "tiles",
        )
    )
    flat = NodeQueryService(source=FilePointSource(raw_path=tmp_path / "raw.json"))
    for bbox in [
        BBox(52.0, 5.0, 52.2, 5.2),
        BBox(52.0, 5.0, 52.1, 5.1),
        BBox(52.02, 5.02, 52.021, 5.021),
        BBox(53.0, 10.0, 54.0, 11.0),
    ]:
        a = tiled.query(bbox)
        b = flat.query(bbox)
        assert a.tiled and not b.tiled
        assert {p.external_id for p in a.points} == {p.external_id for p in b.points}


def test_records_with_non_numeric_coordinates_are_skipped(tmp_path):
    raw = tmp_path / "raw.json"
    raw.write_text(
        json.dumps(
            {
                "metadata": {"downloadDate": "2025-06-01T12:00:00.000Z"},
                "nodes": [
                    {"id": "a", "lat": 52.0, "lng": 5.0},
                    {"id": "b", "lat": "n/a", "lng": 5.1},
                    {"id": "c", "lat": 52.2, "lng": {"deg": 5}},
                    {"id": "d", "lat": "52.3", "lng": "5.3"},
                ],
            }
        ),
        encoding="utf-8",
    )
    data = FilePointSource(raw_path=raw).load_all()
    assert [(p.id, p.lat, p.lng) for p in data.points] == [("a", 52.0, 5.0), ("d", 52.3, 5.3)]
