"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from levels_search.storage import MemoryOrderedStore, SqliteOrderedStore  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop any LEVELS_SEARCH_* variables so settings always start from defaults."""
    for key in list(os.environ):
        if key.upper().startswith("LEVELS_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)  # keep a stray .env out of Settings


@pytest.fixture
def memory_store() -> MemoryOrderedStore:
    return MemoryOrderedStore()


@pytest.fixture
def sqlite_store(tmp_path: Path):
    store = SqliteOrderedStore(tmp_path / "index.sqlite", page_size=4)
    yield store
    asyncio.run(store.close())
