"""Notification port — abstract interface for timed alerts.

Core modules depend on this protocol, never on a specific delivery
mechanism. Adapters raise SchedulingError when an alert cannot be
scheduled; cancel() of an unknown or already-fired id is a no-op.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Protocol

REMINDER_ID = "reminder"
ROLLOVER_ID = "rollover"


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    def schedule(self, notification_id: str, fire_at: datetime, title: str, body: str) -> None: ...

    def schedule_daily(self, notification_id: str, at: time, title: str, body: str) -> None: ...

    def cancel(self, notification_id: str) -> None: ...
