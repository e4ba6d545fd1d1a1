"""Persistence adapter factory — creates the right store based on config."""

from __future__ import annotations

from hydration.config import settings
from hydration.ports.persistence_port import PersistencePort


def create_snapshot_store(backend: str | None = None) -> PersistencePort:
    """Return the store matching STORAGE_BACKEND (or `backend` if given)."""
    backend = (backend or settings.STORAGE_BACKEND).lower()

    if backend == "sqlite":
        from hydration.adapters.sqlite_store import SQLiteSnapshotStore

        return SQLiteSnapshotStore()

    if backend == "json":
        from hydration.adapters.json_store import JsonSnapshotStore

        return JsonSnapshotStore()

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
