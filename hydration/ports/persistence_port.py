"""Persistence port — abstract interface for the state snapshot store.

Core modules depend on this protocol, never on a specific storage backend.
"""

from __future__ import annotations

from typing import Protocol

from hydration.data.snapshot import AppSnapshot


class PersistencePort(Protocol):
    """Abstract load/save of the serialized AppState."""

    def load(self) -> AppSnapshot | None:
        """Return the stored snapshot, or None if nothing was saved yet.

        Raises PersistenceError when stored data cannot be decoded.
        """
        ...

    def save(self, snapshot: AppSnapshot) -> None:
        """Persist `snapshot`, replacing the previous one.

        Raises PersistenceError on failure.
        """
        ...
