"""JSON file snapshot store — implements PersistencePort.

Writes go to a temporary file first and are renamed into place, so a crash
mid-write never leaves a truncated snapshot behind.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError as SnapshotDecodeError

from hydration.core.errors import PersistenceError
from hydration.data.snapshot import AppSnapshot

logger = logging.getLogger(__name__)


class JsonSnapshotStore:
    """Single-file JSON storage for the hydration state."""

    def __init__(self, path: str | None = None) -> None:
        if path is None:
            from hydration.config import settings
            path = settings.SNAPSHOT_PATH

        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> AppSnapshot | None:
        if not self._path.exists():
            return None
        try:
            return AppSnapshot.from_json(self._path.read_bytes())
        except (OSError, SnapshotDecodeError) as exc:
            raise PersistenceError(f"Cannot load state from {self._path}: {exc}") from exc

    def save(self, snapshot: AppSnapshot) -> None:
        temp_file = self._path.with_suffix(".tmp")
        try:
            temp_file.write_text(snapshot.to_json(), encoding="utf-8")
            temp_file.replace(self._path)
        except OSError as exc:
            raise PersistenceError(f"Cannot save state to {self._path}: {exc}") from exc
        logger.debug("State written to %s", self._path)
