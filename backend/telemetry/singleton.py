from __future__ import annotations

import logging
import threading

import duckdb

from telemetry.config import load_settings
from telemetry.store import TelemetryStore

logger = logging.getLogger(__name__)

_STORE: TelemetryStore | None = None
_STORE_LOCK = threading.RLock()


def get_store() -> TelemetryStore | None:
    global _STORE
    settings = load_settings()
    if not settings.enabled:
        return None
    with _STORE_LOCK:
        path = settings.path
        if _STORE is not None:
            # Reopen when the path changes (tests point it at tmp dirs).
            if _STORE.path.resolve() == path.resolve():
                return _STORE
            _STORE.stop(timeout_s=2.0)
            _STORE.conn.close()
            _STORE = None

        path.parent.mkdir(parents=True, exist_ok=True)
        _STORE = TelemetryStore(
            path=path,
            conn=duckdb.connect(str(path)),
            flush_every_s=settings.flush_every_s,
            batch_size=settings.batch_size,
            max_queue=settings.max_queue,
        )
        _STORE.ensure_schema()
        _STORE.start()
        logger.info("Telemetry store opened at %s", path)
        return _STORE


def reset_store() -> None:
    global _STORE
    with _STORE_LOCK:
        if _STORE is not None:
            _STORE.reset()
            _STORE = None
        else:
            load_settings().path.unlink(missing_ok=True)


def record_event(**kwargs) -> None:
    """
    Best-effort: telemetry must never fail a request.
    """
    try:
        store = get_store()
        if store is not None:
            store.record(**kwargs)
    except Exception:
        logger.debug("Dropped telemetry event", exc_info=True)
