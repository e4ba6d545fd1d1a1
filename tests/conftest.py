"""Shared test fixtures and configuration.

Sets up fake environment variables so hydration.config doesn't sys.exit(),
and provides common fixtures: an in-memory notification double, temp-path
stores and a ready engine.
"""

import os

# Patch env vars BEFORE any hydration imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("DATABASE_PATH", ":memory:")

import pytest


class FakeNotifier:
    """Synchronous NotificationPort double that records every call."""

    def __init__(self):
        self.scheduled = {}
        self.daily = {}
        self.schedule_calls = []
        self.cancelled = []
        self.fail = False

    def schedule(self, notification_id, fire_at, title, body):
        from hydration.core.errors import SchedulingError

        self.schedule_calls.append((notification_id, fire_at, title, body))
        if self.fail:
            raise SchedulingError("gateway refused")
        self.scheduled[notification_id] = (fire_at, title, body)

    def schedule_daily(self, notification_id, at, title, body):
        from hydration.core.errors import SchedulingError

        if self.fail:
            raise SchedulingError("gateway refused")
        self.daily[notification_id] = (at, title, body)

    def cancel(self, notification_id):
        self.cancelled.append(notification_id)
        self.scheduled.pop(notification_id, None)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def sqlite_store(tmp_path):
    """Return a SQLiteSnapshotStore backed by a temp file."""
    from hydration.adapters.sqlite_store import SQLiteSnapshotStore
    return SQLiteSnapshotStore(db_path=str(tmp_path / "test_hydration.db"))


@pytest.fixture
def json_store(tmp_path):
    """Return a JsonSnapshotStore backed by a temp file."""
    from hydration.adapters.json_store import JsonSnapshotStore
    return JsonSnapshotStore(path=str(tmp_path / "test_hydration.json"))


@pytest.fixture
def engine(notifier):
    """Return a HydrationEngine over default state and the fake notifier."""
    from hydration.core.engine import HydrationEngine
    from hydration.data.models import AppState
    return HydrationEngine(AppState(), notifier)
