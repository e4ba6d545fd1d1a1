"""
Hydration Tracker — Data Models.

The state the engine owns: intake records, user settings and the two
reminder flags the front end observes. Records persist across restarts
through a PersistenceGateway; nothing here performs I/O.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from enum import Enum


class Accent(str, Enum):
    """Accent colors a user can pick for the progress display."""

    BROWN = "brown"
    INDIGO = "indigo"
    BLUE = "blue"
    TEAL = "teal"
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"
    PINK = "pink"


@dataclass(frozen=True)
class FactoryDefaults:
    """Every factory value in one place.

    `restore_defaults()` resets target, accent and reminder interval to
    these; the remaining fields bound and pace the reminder engine.
    """

    target: float = 3000.0
    accent: Accent = Accent.INDIGO
    reminder_interval: float = 3600.0
    retention_days: float = 7.0
    min_reminder_interval: float = 1200.0
    max_reminder_interval: float = 7200.0
    average_intake: float = 250.0             # mL assumed per reminder cycle
    startup_reminder_delay: float = 5.0       # seconds
    rollover_time: time = time(hour=0, minute=5)


FACTORY_DEFAULTS = FactoryDefaults()


def _new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class HydrationRecord:
    """One logged intake event.

    `id` is the identity; `date` is an ordinary attribute, so two drinks
    logged in the same instant stay distinguishable.
    """

    date: datetime
    volume: float                     # mL, > 0 once stored
    id: str = field(default_factory=_new_record_id)


# Returned by most_recent() when nothing was ever logged. Not a real 0 mL event.
EPOCH_RECORD = HydrationRecord(
    date=datetime(1970, 1, 1, tzinfo=timezone.utc), volume=0.0, id="epoch",
)


def is_sentinel(record: HydrationRecord) -> bool:
    """True for the "no intake ever recorded" placeholder."""
    return record.id == EPOCH_RECORD.id


@dataclass
class HydrationSettings:
    """User preferences. Mutated only through SettingsState."""

    target: float = FACTORY_DEFAULTS.target
    reminder_interval: float = FACTORY_DEFAULTS.reminder_interval
    accent: Accent = FACTORY_DEFAULTS.accent
    retention_days: float = FACTORY_DEFAULTS.retention_days


@dataclass
class AppState:
    """Aggregate root owned by HydrationEngine.

    reminder_banner_visible implies reminder_active.
    """

    settings: HydrationSettings = field(default_factory=HydrationSettings)
    records: list[HydrationRecord] = field(default_factory=list)
    reminder_active: bool = False
    reminder_banner_visible: bool = False
