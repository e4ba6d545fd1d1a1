"""
Hydration Tracker — SQLite snapshot store.

Implements PersistencePort. Settings and flags live in a single-row
table, records in a second table ordered by insertion position. A save
replaces both in one transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from hydration.core.errors import PersistenceError
from hydration.data.snapshot import AppSnapshot, RecordSnapshot

logger = logging.getLogger(__name__)


class SQLiteSnapshotStore:
    """SQLite-backed storage for the hydration state."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from hydration.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the tables if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS hydration_state (
                    id                  INTEGER PRIMARY KEY CHECK (id = 1),
                    target              REAL    NOT NULL,
                    accent              TEXT    NOT NULL,
                    time_to_drink       INTEGER NOT NULL DEFAULT 0,
                    notification_shown  INTEGER NOT NULL DEFAULT 0,
                    retention_days      REAL    NOT NULL,
                    reminder_interval   REAL    NOT NULL,
                    updated_at          TEXT    NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS hydration_records (
                    id        TEXT    PRIMARY KEY,
                    position  INTEGER NOT NULL,
                    date      TEXT    NOT NULL,
                    volume    REAL    NOT NULL
                )
            """)
        logger.debug("Hydration tables initialized at %s", self._db_path)

    def load(self) -> AppSnapshot | None:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT * FROM hydration_state WHERE id = 1").fetchone()
                if row is None:
                    return None
                rows = conn.execute(
                    "SELECT * FROM hydration_records ORDER BY position"
                ).fetchall()
            return AppSnapshot(
                target=row["target"],
                records=[
                    RecordSnapshot(
                        id=r["id"],
                        date=datetime.fromisoformat(r["date"]),
                        volume=r["volume"],
                    )
                    for r in rows
                ],
                accent=row["accent"],
                time_to_drink=bool(row["time_to_drink"]),
                time_to_drink_notification_visible=bool(row["notification_shown"]),
                retention_days=row["retention_days"],
                reminder_interval=row["reminder_interval"],
            )
        except (sqlite3.Error, ValueError) as exc:
            raise PersistenceError(f"Cannot load state from {self._db_path}: {exc}") from exc

    def save(self, snapshot: AppSnapshot) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO hydration_state
                        (id, target, accent, time_to_drink, notification_shown,
                         retention_days, reminder_interval, updated_at)
                    VALUES (1, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        snapshot.target, snapshot.accent.value,
                        int(snapshot.time_to_drink),
                        int(snapshot.time_to_drink_notification_visible),
                        snapshot.retention_days, snapshot.reminder_interval,
                        datetime.now().isoformat(),
                    ),
                )
                conn.execute("DELETE FROM hydration_records")
                conn.executemany(
                    "INSERT INTO hydration_records (id, position, date, volume) VALUES (?, ?, ?, ?)",
                    [
                        (r.id, pos, r.date.isoformat(), r.volume)
                        for pos, r in enumerate(snapshot.records)
                    ],
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot save state to {self._db_path}: {exc}") from exc
        logger.debug("State saved: %d record(s)", len(snapshot.records))
