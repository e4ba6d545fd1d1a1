"""Tests for hydration.adapters.store_factory."""

from unittest.mock import patch

import pytest

from hydration.adapters.json_store import JsonSnapshotStore
from hydration.adapters.sqlite_store import SQLiteSnapshotStore
from hydration.adapters.store_factory import create_snapshot_store


def test_sqlite_backend(tmp_path):
    with patch("hydration.config.settings.DATABASE_PATH", str(tmp_path / "h.db")):
        store = create_snapshot_store("sqlite")
    assert isinstance(store, SQLiteSnapshotStore)


def test_json_backend(tmp_path):
    with patch("hydration.config.settings.SNAPSHOT_PATH", str(tmp_path / "h.json")):
        store = create_snapshot_store("JSON")
    assert isinstance(store, JsonSnapshotStore)


def test_default_comes_from_settings(tmp_path):
    with patch("hydration.adapters.store_factory.settings") as mock_settings, \
         patch("hydration.config.settings.SNAPSHOT_PATH", str(tmp_path / "h.json")):
        mock_settings.STORAGE_BACKEND = "json"
        store = create_snapshot_store()
    assert isinstance(store, JsonSnapshotStore)


def test_unknown_backend_raises():
    with pytest.raises(ValueError, match="Unknown STORAGE_BACKEND"):
        create_snapshot_store("redis")
