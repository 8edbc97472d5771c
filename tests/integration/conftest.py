"""Integration test configuration and fixtures.

Tests that need a real Graphviz installation are skipped when ``dot`` is
not on PATH (or at ``VT_DOT_EXECUTABLE``).
"""

from __future__ import annotations

import os
import shutil

import pytest
from dotenv import load_dotenv

# Load .env file at import time so the executable check sees VT_DOT_EXECUTABLE
load_dotenv()


def _graphviz_executable() -> str | None:
    return shutil.which(os.getenv("VT_DOT_EXECUTABLE", "dot"))


@pytest.fixture
def dot_executable() -> str:
    """Path to the Graphviz binary, skipping the test if there is none."""
    executable = _graphviz_executable()
    if executable is None:
        pytest.skip("Graphviz 'dot' executable not available")
    return executable
