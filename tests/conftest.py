from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from tmops.core.adapters.memory import InMemoryTMServer  # noqa: E402


@pytest.fixture
def tm_server() -> InMemoryTMServer:
    """Fake TM server with a single database server `DB01` and no containers."""
    server = InMemoryTMServer()
    server.register_database_server("DB01", {"engine": "mssql", "host": "db01.local"})
    return server
