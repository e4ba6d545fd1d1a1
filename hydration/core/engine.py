"""
Hydration Tracker — Engine.

Single owner of AppState. Every intent from the front end and every
callback from the notification gateway goes through one lock, so timer
callbacks from another thread or event loop see the same serialization
as user actions.

Each committed mutation is published as a ChangeEvent to subscribers;
persistence is just one of them. A subscriber failure is logged and never
undoes the in-memory change, which stays authoritative for the process.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, time, tzinfo
from typing import TYPE_CHECKING

from hydration.core import metrics
from hydration.core.errors import PersistenceError, SchedulingError
from hydration.core.record_store import RecordStore
from hydration.core.reminder_scheduler import FirePlan, ReminderScheduler, ReminderState
from hydration.core.rollover import purge_expired
from hydration.core.settings_state import SettingsState
from hydration.data.models import (
    FACTORY_DEFAULTS,
    Accent,
    AppState,
    HydrationRecord,
    HydrationSettings,
)
from hydration.data.snapshot import AppSnapshot, from_snapshot, to_snapshot
from hydration.ports.notification_port import REMINDER_ID, ROLLOVER_ID

if TYPE_CHECKING:
    from hydration.ports.notification_port import NotificationPort
    from hydration.ports.persistence_port import PersistencePort

logger = logging.getLogger(__name__)

ROLLOVER_TITLE = "Reset Day"
ROLLOVER_BODY = "Starting new day"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed mutation and the state it produced."""

    kind: str
    snapshot: AppSnapshot


Subscriber = Callable[[ChangeEvent], None]


def load_state(store: PersistencePort) -> AppState:
    """Load the persisted state, falling back to defaults."""
    try:
        snapshot = store.load()
    except PersistenceError as exc:
        logger.error("Stored state is unreadable, starting from defaults: %s", exc)
        return AppState()
    if snapshot is None:
        logger.info("No stored state, starting from defaults")
        return AppState()
    return from_snapshot(snapshot)


def persist_to(store: PersistencePort) -> Subscriber:
    """Subscriber that saves every change through `store`."""

    def _save(event: ChangeEvent) -> None:
        try:
            store.save(event.snapshot)
        except PersistenceError as exc:
            logger.error("Failed to persist state after %s: %s", event.kind, exc)

    return _save


class HydrationEngine:
    """Serializes mutations of AppState and publishes the results."""

    def __init__(
        self,
        state: AppState,
        gateway: NotificationPort,
        rollover_at: time = FACTORY_DEFAULTS.rollover_time,
    ) -> None:
        self._lock = threading.RLock()
        self._rollover_at = rollover_at
        self._state = state
        self._gateway = gateway
        self._store = RecordStore(state.records)
        self._settings = SettingsState(state.settings)
        self._scheduler = ReminderScheduler(state, self._store, self._settings, gateway)
        self._subscribers: list[Subscriber] = []

    # -- pipeline -----------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def _commit(self, kind: str) -> None:
        event = ChangeEvent(kind=kind, snapshot=to_snapshot(self._state))
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as exc:
                logger.error("Subscriber failed on %s: %s", kind, exc)

    # -- lifecycle ----------------------------------------------------------

    def start(self, now: datetime) -> None:
        """Purge expired records, arm the daily rollover, check for an overdue drink."""
        with self._lock:
            purge_expired(self._store, now, self._settings.retention_days)
            try:
                self._gateway.schedule_daily(
                    ROLLOVER_ID, self._rollover_at, ROLLOVER_TITLE, ROLLOVER_BODY,
                )
            except SchedulingError as exc:
                logger.error("Failed to schedule daily rollover: %s", exc)
            self._scheduler.recompute_initial(now)
            self._commit("start")

    def handle_notification(self, notification_id: str, now: datetime) -> None:
        """Inbound callback from the notification gateway."""
        if notification_id == REMINDER_ID:
            self.on_reminder_fired()
        elif notification_id == ROLLOVER_ID:
            self.on_midnight_rollover(now)
        else:
            logger.warning("Unknown notification id %r", notification_id)

    def on_reminder_fired(self) -> None:
        with self._lock:
            self._scheduler.on_reminder_fired()
            self._commit("reminder_fired")

    def on_midnight_rollover(self, now: datetime) -> int:
        with self._lock:
            removed = purge_expired(self._store, now, self._settings.retention_days)
            self._scheduler.on_midnight_rollover()
            self._commit("rollover")
            return removed

    # -- intents ------------------------------------------------------------

    def register_intake(
        self, volume: float, now: datetime, at: datetime | None = None,
    ) -> tuple[HydrationRecord, FirePlan | None]:
        """Log a drink at `at` (defaults to `now`).

        A naive `at` is read in the zone of `now`.

        Raises ValidationError or DuplicateRecordError with state unchanged.
        """
        when = at or now
        if when.tzinfo is None and now.tzinfo is not None:
            when = when.replace(tzinfo=now.tzinfo)
        record = HydrationRecord(date=when, volume=float(volume))
        with self._lock:
            plan = self._scheduler.on_intake_registered(record, now)
            self._commit("intake")
        logger.info("Intake registered: %.0f mL at %s", record.volume, record.date.isoformat())
        return record, plan

    def delete_record(self, record_id: str) -> HydrationRecord:
        """Raises NotFoundError if no record has this id."""
        with self._lock:
            removed = self._store.remove_by_id(record_id)
            self._commit("delete")
        logger.info("Record %s deleted", record_id)
        return removed

    def dismiss_reminder(self) -> None:
        with self._lock:
            self._scheduler.on_dismissed()
            self._commit("dismiss")

    def set_target(self, value: float) -> float:
        with self._lock:
            result = self._settings.set_target(value)
            self._commit("settings")
        return result

    def set_reminder_interval(self, seconds: float) -> float:
        with self._lock:
            result = self._settings.set_reminder_interval(seconds)
            self._commit("settings")
        return result

    def set_accent(self, value: Accent | str) -> Accent:
        with self._lock:
            result = self._settings.set_accent(value)
            self._commit("settings")
        return result

    def set_retention_days(self, days: float) -> float:
        with self._lock:
            result = self._settings.set_retention_days(days)
            self._commit("settings")
        return result

    def restore_defaults(self) -> None:
        with self._lock:
            self._settings.restore_defaults()
            self._commit("settings")

    def erase_records(self) -> int:
        """Clear every record and drop the pending reminder. Settings survive."""
        with self._lock:
            self._scheduler.cancel()
            removed = self._store.clear()
            self._commit("erase")
        logger.info("Erased %d record(s)", removed)
        return removed

    def reset_all(self) -> int:
        with self._lock:
            self._settings.restore_defaults()
            return self.erase_records()

    # -- reads --------------------------------------------------------------

    @property
    def reminder_state(self) -> ReminderState:
        return self._scheduler.state

    @property
    def next_fire_at(self) -> datetime | None:
        return self._scheduler.next_fire_at

    def snapshot(self) -> AppSnapshot:
        with self._lock:
            return to_snapshot(self._state)

    def records(self) -> tuple[HydrationRecord, ...]:
        with self._lock:
            return self._store.snapshot()

    def settings(self) -> HydrationSettings:
        with self._lock:
            return replace(self._state.settings)

    def projection(self, now: datetime) -> metrics.Projection:
        with self._lock:
            return metrics.build_projection(self._state, now)

    def todays_records(self, now: datetime) -> list[HydrationRecord]:
        return metrics.todays_records(self.records(), now)

    def remainder(self, now: datetime) -> float:
        with self._lock:
            target = self._settings.target
        return metrics.remainder(self.records(), target, now)

    def weekly_totals(self, tz: tzinfo | None = None) -> dict[date, float]:
        return metrics.weekly_totals(self.records(), tz)

    def most_recent(self) -> HydrationRecord:
        return metrics.most_recent(self.records())

    @property
    def banner_visible(self) -> bool:
        with self._lock:
            return self._state.reminder_banner_visible
