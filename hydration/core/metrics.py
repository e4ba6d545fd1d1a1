"""Hydration metrics — pure business logic.

Daily progress, remainder, weekly per-day totals and the read-only
projection consumed by the front end.

No I/O and no mutation: every function only reads the records it is given.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from hydration.core.clock import local_day
from hydration.data.models import EPOCH_RECORD, Accent, AppState, HydrationRecord


@dataclass(frozen=True)
class Projection:
    """What the UI and companion surfaces are allowed to see."""

    target: float
    todays_total: float
    percent_complete: float
    accent: Accent
    reminder_active: bool


def todays_records(
    records: Iterable[HydrationRecord], now: datetime,
) -> list[HydrationRecord]:
    """Records logged on `now`'s calendar day, in insertion order."""
    today = now.date()
    return [r for r in records if local_day(r.date, now) == today]


def todays_total(records: Iterable[HydrationRecord], now: datetime) -> float:
    return sum((r.volume for r in todays_records(records, now)), 0.0)


def remainder(
    records: Iterable[HydrationRecord], target: float, now: datetime,
) -> float:
    """Volume still needed today. Negative once the target is exceeded."""
    return target - todays_total(records, now)


def percent_complete(
    records: Iterable[HydrationRecord], target: float, now: datetime,
) -> float:
    """Fraction of the target drunk today (1.0 == goal met)."""
    if target <= 0:
        return 0.0
    return todays_total(records, now) / target


def weekly_totals(
    records: Iterable[HydrationRecord], tz: tzinfo | None = None,
) -> dict[date, float]:
    """Summed volume per calendar day.

    Days with no records are absent, not zero-filled.
    """
    totals: dict[date, float] = {}
    for record in records:
        day = local_day(record.date, tz)
        totals[day] = totals.get(day, 0.0) + record.volume
    return totals


def most_recent(records: Iterable[HydrationRecord]) -> HydrationRecord:
    records = list(records)
    if not records:
        return EPOCH_RECORD
    return max(records, key=lambda r: r.date)


def build_projection(state: AppState, now: datetime) -> Projection:
    target = state.settings.target
    return Projection(
        target=target,
        todays_total=todays_total(state.records, now),
        percent_complete=percent_complete(state.records, target, now),
        accent=state.settings.accent,
        reminder_active=state.reminder_active,
    )
