"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from valuetrace.graph.store import GraphStore


@pytest.fixture(autouse=True)
def isolate_render_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep VT_* overrides from the developer's shell out of test runs."""
    monkeypatch.delenv("VT_DOT_EXECUTABLE", raising=False)
    monkeypatch.delenv("VT_OUTPUT_FORMAT", raising=False)


@pytest.fixture
def graph() -> GraphStore:
    """Return a fresh, empty value graph."""
    return GraphStore()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
