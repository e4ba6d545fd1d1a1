"""
Hydration Tracker — Adaptive drink reminder.

Decides when the next "time to drink" alert should fire. Reminders speed
up as midnight approaches with a large deficit left, but never come
slower than the user's configured reminder interval.

State machine:

    IDLE ──intake──▶ PENDING ──fired──▶ ACTIVE ──dismissed──▶ DISMISSED
      ▲                 │                                        │
      └──intake / goal met / cancel ◀──────────────────────────────┘

This module is delivery-agnostic: it depends on the NotificationPort
protocol, not on a specific implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from hydration.core.clock import relative_time, seconds_until_midnight
from hydration.core.errors import SchedulingError
from hydration.core.metrics import remainder
from hydration.data.models import FACTORY_DEFAULTS, is_sentinel
from hydration.ports.notification_port import REMINDER_ID

if TYPE_CHECKING:
    from hydration.core.record_store import RecordStore
    from hydration.core.settings_state import SettingsState
    from hydration.data.models import AppState, HydrationRecord
    from hydration.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

SIP_TITLE = "Take a Sip"
STARTUP_TITLE = "Time to Drink"
STARTUP_BODY = "Remember to stay hydrated"


class ReminderState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    ACTIVE = "active"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class FirePlan:
    """Outcome of the next-fire-time computation."""

    ideal_interval: float    # seconds per sip to finish exactly at midnight
    fire_in: float           # seconds after the most recent intake
    fire_at: datetime


# ---------------------------------------------------------------------------
# Next-fire-time algorithm
# ---------------------------------------------------------------------------


def compute_fire_time(
    last_intake: datetime,
    remaining: float,
    reminder_interval: float,
    time_until_midnight: float,
    average_intake: float = FACTORY_DEFAULTS.average_intake,
) -> FirePlan:
    """Pace reminders so the remainder is drunk by midnight.

    `fire_at` may already be in the past when the computation runs late;
    gateways treat that as "fire immediately".

    Raises ValueError if there is nothing left to drink.
    """
    if remaining <= 0:
        raise ValueError(f"remainder must be positive, got {remaining!r}")

    ideal = average_intake * time_until_midnight / remaining
    fire_in = min(ideal, reminder_interval)
    return FirePlan(
        ideal_interval=ideal,
        fire_in=fire_in,
        fire_at=last_intake + timedelta(seconds=fire_in),
    )


def reminder_body(fire_at: datetime, last_intake: datetime) -> str:
    """Message shown when the sip reminder fires."""
    return f"Last intake was {relative_time(last_intake, fire_at)}"


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ReminderScheduler:
    """Tracks the drink-reminder condition and keeps one alert scheduled."""

    def __init__(
        self,
        state: AppState,
        store: RecordStore,
        settings: SettingsState,
        gateway: NotificationPort,
    ) -> None:
        self._app = state
        self._store = store
        self._settings = settings
        self._gateway = gateway
        self.state = ReminderState.ACTIVE if state.reminder_active else ReminderState.IDLE
        self.next_fire_at: datetime | None = None

    def _cancel_pending(self) -> None:
        self._gateway.cancel(REMINDER_ID)
        self.next_fire_at = None

    def _schedule(self, fire_at: datetime, title: str, body: str) -> bool:
        try:
            self._gateway.schedule(REMINDER_ID, fire_at, title, body)
        except SchedulingError as exc:
            logger.error("Failed to schedule reminder for %s: %s", fire_at.isoformat(), exc)
            return False
        self.next_fire_at = fire_at
        self.state = ReminderState.PENDING
        logger.info("Reminder scheduled for %s", fire_at.isoformat())
        return True

    def on_intake_registered(self, record: HydrationRecord, now: datetime) -> FirePlan | None:
        """Store the intake and reschedule the next reminder.

        Returns the plan that was scheduled, or None when the goal is met
        or the gateway refused the alert.
        """
        self._store.append(record)
        self._cancel_pending()
        self._app.reminder_active = False
        self._app.reminder_banner_visible = False
        self.state = ReminderState.IDLE

        remaining = remainder(self._store, self._settings.target, now)
        if remaining <= 0:
            logger.info("Daily target reached (%.0f mL over), no reminder", -remaining)
            return None

        last = self._store.most_recent()
        plan = compute_fire_time(
            last_intake=last.date,
            remaining=remaining,
            reminder_interval=self._settings.reminder_interval,
            time_until_midnight=seconds_until_midnight(now),
        )
        if not self._schedule(plan.fire_at, SIP_TITLE, reminder_body(plan.fire_at, last.date)):
            return None
        return plan

    def on_reminder_fired(self) -> None:
        if self.state is not ReminderState.PENDING:
            logger.debug("Ignoring reminder fire in state %s", self.state.value)
            return
        self.state = ReminderState.ACTIVE
        self.next_fire_at = None
        self._app.reminder_active = True
        self._app.reminder_banner_visible = True
        logger.info("Time to drink")

    def on_dismissed(self) -> None:
        """Clear the condition. A reminder scheduled afterwards stands."""
        self._app.reminder_active = False
        self._app.reminder_banner_visible = False
        if self.state is ReminderState.ACTIVE:
            self.state = ReminderState.DISMISSED
            logger.info("Reminder dismissed")

    def on_midnight_rollover(self) -> None:
        # The pending schedule, if any, stands; nothing is recomputed.
        logger.debug("Midnight rollover, reminder state stays %s", self.state.value)

    def recompute_initial(self, now: datetime) -> bool:
        """Startup check: remind right away if the last drink is too old.

        Returns True when an imminent reminder was scheduled.
        """
        if self.state is ReminderState.ACTIVE:
            logger.debug("Reminder condition restored as active, nothing to schedule")
            return False

        last = self._store.most_recent()
        overdue = is_sentinel(last) or last.date < now - timedelta(
            seconds=self._settings.reminder_interval,
        )
        if not overdue:
            logger.debug("Last intake at %s is recent, staying idle", last.date.isoformat())
            return False

        self._cancel_pending()
        fire_at = now + timedelta(seconds=FACTORY_DEFAULTS.startup_reminder_delay)
        return self._schedule(fire_at, STARTUP_TITLE, STARTUP_BODY)

    def cancel(self) -> None:
        """Drop any scheduled reminder and return to IDLE."""
        self._cancel_pending()
        if self.state is ReminderState.PENDING:
            self.state = ReminderState.IDLE
