import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `cluster.*`, `engine.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

REPO_ROOT = BACKEND_ROOT.parent
SAMPLE_DATA = REPO_ROOT / "data" / "sample"


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    # Telemetry is opt-in per test.
    monkeypatch.setenv("NODEMAP_TELEMETRY", "0")
    yield
    from api.nodes import reset_services
    from catalog.registry import clear_registry_cache

    clear_registry_cache()
    reset_services()
