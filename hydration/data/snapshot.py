"""
Hydration Tracker — Persisted snapshot contract.

The structure every PersistenceGateway stores and returns. Field names on
the wire are camelCase so snapshots written by older builds still load:

{
    "target": 3000.0,
    "records": [{"id": "9f1c...", "date": "2025-01-15T08:00:00+02:00", "volume": 250.0}],
    "accent": "indigo",
    "timeToDrink": false,
    "timeToDrinkNotificationVisible": false,
    "retentionDays": 7.0,
    "reminderInterval": 3600.0
}
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hydration.data.models import (
    FACTORY_DEFAULTS,
    Accent,
    AppState,
    HydrationRecord,
    HydrationSettings,
)

logger = logging.getLogger(__name__)


class RecordSnapshot(BaseModel):
    """One intake record as persisted."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    date: datetime
    volume: float = Field(gt=0)

    @field_validator("date")
    @classmethod
    def attach_zone(cls, v: datetime) -> datetime:
        """Dates stored without an offset are read in the configured TIMEZONE."""
        if v.tzinfo is None:
            from hydration.config import settings
            return v.replace(tzinfo=ZoneInfo(settings.TIMEZONE))
        return v


class AppSnapshot(BaseModel):
    """Serialized form of AppState."""

    model_config = ConfigDict(populate_by_name=True)

    target: float = Field(default=FACTORY_DEFAULTS.target, gt=0)
    records: list[RecordSnapshot] = []
    accent: Accent = FACTORY_DEFAULTS.accent
    time_to_drink: bool = Field(default=False, alias="timeToDrink")
    time_to_drink_notification_visible: bool = Field(
        default=False, alias="timeToDrinkNotificationVisible",
    )
    retention_days: float = Field(
        default=FACTORY_DEFAULTS.retention_days, gt=0, alias="retentionDays",
    )
    reminder_interval: float = Field(
        default=FACTORY_DEFAULTS.reminder_interval,
        ge=FACTORY_DEFAULTS.min_reminder_interval,
        le=FACTORY_DEFAULTS.max_reminder_interval,
        alias="reminderInterval",
    )

    @field_validator("accent", mode="before")
    @classmethod
    def parse_accent(cls, v: object) -> Accent:
        """Unknown color names decode to the default accent."""
        if isinstance(v, Accent):
            return v
        try:
            return Accent(str(v).lower())
        except ValueError:
            logger.warning("Unknown accent %r in snapshot, using %s", v, FACTORY_DEFAULTS.accent.value)
            return FACTORY_DEFAULTS.accent

    @model_validator(mode="after")
    def check_unique_records(self) -> AppSnapshot:
        """Record ids and dates must be unique, as in a live RecordStore."""
        ids = {r.id for r in self.records}
        dates = {r.date for r in self.records}
        if len(ids) != len(self.records) or len(dates) != len(self.records):
            raise ValueError("snapshot contains duplicate record ids or dates")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, raw: str | bytes) -> AppSnapshot:
        return cls.model_validate_json(raw)


def to_snapshot(state: AppState) -> AppSnapshot:
    """Capture an AppState as an immutable snapshot."""
    return AppSnapshot(
        target=state.settings.target,
        records=[
            RecordSnapshot(id=r.id, date=r.date, volume=r.volume)
            for r in state.records
        ],
        accent=state.settings.accent,
        time_to_drink=state.reminder_active,
        time_to_drink_notification_visible=state.reminder_banner_visible,
        retention_days=state.settings.retention_days,
        reminder_interval=state.settings.reminder_interval,
    )


def from_snapshot(snapshot: AppSnapshot) -> AppState:
    """Rebuild an AppState from a snapshot."""
    return AppState(
        settings=HydrationSettings(
            target=snapshot.target,
            reminder_interval=snapshot.reminder_interval,
            accent=snapshot.accent,
            retention_days=snapshot.retention_days,
        ),
        records=[
            HydrationRecord(date=r.date, volume=r.volume, id=r.id)
            for r in snapshot.records
        ],
        reminder_active=snapshot.time_to_drink,
        # The banner can only show while the condition holds
        reminder_banner_visible=(
            snapshot.time_to_drink and snapshot.time_to_drink_notification_visible
        ),
    )
