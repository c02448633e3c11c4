"""Shared pytest fixtures for the shoplist test suite."""

from __future__ import annotations

import logging
import random
from typing import Generator

import pytest

from shoplist.config import get_settings
from shoplist.db.repository import Database, open_database
from shoplist.store import EntityStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "settings_shoplist.db"
    monkeypatch.setenv("SHOPLIST_DATABASE_PATH", str(db_path))
    get_settings.cache_clear()
    yield
    monkeypatch.delenv("SHOPLIST_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by ``configure_logging`` during a test."""

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture()
def db(tmp_path) -> Generator[Database, None, None]:
    """Open a fresh database file for the test."""

    handle = open_database(tmp_path, "shoplist")
    yield handle
    handle.close()


@pytest.fixture()
def store(db) -> EntityStore:
    """Return a store loaded from the empty test database."""

    entity_store = EntityStore(rng=random.Random(1234))
    entity_store.load(db)
    return entity_store
