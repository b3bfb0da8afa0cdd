from __future__ import annotations

import json
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from telemetry.sql import (
    CREATE_EVENTS_TABLE_SQL,
    INSERT_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)


def _safe_float(v) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass
class TelemetryStore:
    """
    Request event log in a local DuckDB file.

    Writes go through a queue drained by a single writer thread, so `record()`
    never blocks a request and never raises into it.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    flush_every_s: float = 0.5
    batch_size: int = 250
    max_queue: int = 0
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[dict[str, Any]]" = field(init=False, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._q = queue.Queue(maxsize=max(0, int(self.max_queue)))

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="telemetry-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        endpoint: str,
        dataset: str,
        zoom: int | None,
        bbox: dict[str, float],
        stats: dict[str, Any],
    ) -> None:
        self.start()
        try:
            self._q.put_nowait(
                {
                    "ts_ms": int(time.time() * 1000),
                    "endpoint": str(endpoint),
                    "dataset": str(dataset),
                    "zoom": int(zoom) if zoom is not None else None,
                    "south": float(bbox["south"]),
                    "west": float(bbox["west"]),
                    "north": float(bbox["north"]),
                    "east": float(bbox["east"]),
                    "stats_json": json.dumps(stats, ensure_ascii=False),
                }
            )
        except queue.Full:
            # drop telemetry on overload
            pass

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Wait until queued events are written (used by tests).
        """
        if self._worker is None:
            return
        deadline = time.time() + timeout_s
        while time.time() < deadline:
            if self._q.unfinished_tasks == 0:
                break
            time.sleep(0.01)
        # The writer flushes on a timer; give it one more tick.
        time.sleep(self.flush_every_s + 0.05)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        """
        Run a read query inside the backend process.

        DuckDB holds a file lock while the backend writes, so other processes
        can't open the file; query through the API instead.
        """
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def summary(
        self,
        *,
        dataset: str | None = None,
        endpoint: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if dataset:
            where.append("dataset = ?")
            params.append(dataset)
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)

        out: list[dict[str, Any]] = []
        for dataset_v, endpoint_v, n, avg_ms, p50, p95, p99, avg_markers, hit_rate in rows:
            out.append(
                {
                    "dataset": dataset_v,
                    "endpoint": endpoint_v,
                    "n": int(n),
                    "avgTotalMs": _safe_float(avg_ms),
                    "p50TotalMs": _safe_float(p50),
                    "p95TotalMs": _safe_float(p95),
                    "p99TotalMs": _safe_float(p99),
                    "avgMarkers": _safe_float(avg_markers),
                    "cacheHitRate": _safe_float(hit_rate),
                }
            )
        return out

    def slowest(
        self,
        *,
        dataset: str | None = None,
        endpoint: str | None = None,
        limit: int = 25,
    ) -> list[dict[str, Any]]:
        where = ["json_extract(stats_json, '$.timingsMs.total') IS NOT NULL"]
        params: list[Any] = []
        if dataset:
            where.append("dataset = ?")
            params.append(dataset)
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        params.append(int(max(1, min(200, limit))))

        rows = self.query(
            SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(where)), params
        )
        return [
            {
                "tsMs": int(ts_ms),
                "dataset": dataset_v,
                "endpoint": endpoint_v,
                "totalMs": _safe_float(total_ms),
                "pointCount": int(point_count) if point_count is not None else None,
                "cacheHit": bool(cache_hit) if cache_hit is not None else None,
                "zoom": int(zoom) if zoom is not None else None,
            }
            for ts_ms, dataset_v, endpoint_v, total_ms, point_count, cache_hit, zoom in rows
        ]

    def reset(self) -> None:
        # Stop the writer first so it can't write to a closed connection.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        self.ensure_schema()
        batch: list[dict[str, Any]] = []
        last_flush = time.time()

        def flush_batch() -> None:
            nonlocal batch
            if not batch:
                return
            with self._lock:
                self.conn.executemany(
                    INSERT_EVENTS_SQL,
                    [
                        (
                            e["ts_ms"],
                            e["endpoint"],
                            e["dataset"],
                            e["zoom"],
                            e["south"],
                            e["west"],
                            e["north"],
                            e["east"],
                            e["stats_json"],
                        )
                        for e in batch
                    ],
                )
                # Make rows visible to readers immediately.
                self.conn.execute("CHECKPOINT;")
            batch = []

        while not self._stop.is_set():
            try:
                e = self._q.get(timeout=0.1)
            except queue.Empty:
                e = None

            if e is not None:
                batch.append(e)
                self._q.task_done()

            now = time.time()
            if len(batch) >= self.batch_size or (batch and (now - last_flush) >= self.flush_every_s):
                flush_batch()
                last_flush = now

        # Drain remaining
        try:
            while True:
                batch.append(self._q.get_nowait())
                self._q.task_done()
        except queue.Empty:
            pass
        flush_batch()
