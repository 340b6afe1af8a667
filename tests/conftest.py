"""
Pytest configuration and shared fixtures for all test types.

Layout:
- tests/unit: fake transport only, no network
- tests/contracts: locked behaviour of public error codes and classification
- tests/integration: real HTTP against a local endpoint on 127.0.0.1
"""

import sys
import pathlib
import pytest


# Ensure code/ is importable
_REPO_ROOT = pathlib.Path(__file__).resolve().parent.parent
_CODE_DIR = _REPO_ROOT / "code"
if str(_CODE_DIR) not in sys.path:
    sys.path.insert(0, str(_CODE_DIR))


# ============================================================================
# Auto-apply markers based on folder structure
# ============================================================================
FOLDER_MARKS = [
    (("tests", "unit"), ("unit",)),
    (("tests", "contracts"), ("contracts",)),
    (("tests", "integration"), ("integration",)),
]


def _under(path_posix: str, *segments: str) -> bool:
    return f"/{'/'.join(segments)}/" in path_posix


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers from FOLDER_MARKS."""
    for item in items:
        p = pathlib.Path(str(item.fspath)).as_posix()
        for segs, marks in FOLDER_MARKS:
            if _under(p, *segs):
                for m in marks:
                    item.add_marker(getattr(pytest.mark, m))


# ============================================================================
# Global environment setup
# ============================================================================
@pytest.fixture(autouse=True)
def _stable_env(monkeypatch: pytest.MonkeyPatch):
    """Set stable environment for all tests."""
    monkeypatch.setenv("TZ", "UTC")
    monkeypatch.setenv("PYTHONUNBUFFERED", "1")
    monkeypatch.setenv("JSON_LOGS", "1")
    monkeypatch.setenv("LOG_STREAM", "stdout")
    for name in ("PAYLOAD_STORAGE_CONNECT_TIMEOUT_S", "PAYLOAD_STORAGE_READ_TIMEOUT_S", "PAYLOAD_STORAGE_CHUNK_SIZE"):
        monkeypatch.delenv(name, raising=False)

    yield
