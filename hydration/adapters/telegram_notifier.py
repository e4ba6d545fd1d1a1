"""Telegram notification adapter — implements NotificationPort.

Timed alerts are python-telegram-bot JobQueue jobs named after the
notification id. When a one-shot alert fires, its text is pushed to every
allowed chat with a "Dismiss" button and the engine is told through
`on_fire`. Daily jobs (the rollover trigger) only call `on_fire`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, time, tzinfo

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes, JobQueue

from hydration.core.errors import SchedulingError

logger = logging.getLogger(__name__)

DISMISS_CALLBACK = "dismiss"

FireCallback = Callable[[str, datetime], None]


class TelegramNotifier:
    """Telegram JobQueue implementation of NotificationPort."""

    def __init__(
        self,
        bot: Bot,
        job_queue: JobQueue | None,
        chat_ids: Iterable[int],
        tz: tzinfo,
        on_fire: FireCallback | None = None,
    ) -> None:
        self._bot = bot
        self._job_queue = job_queue
        self._chat_ids = list(chat_ids)
        self._tz = tz
        self._on_fire = on_fire

    def bind(self, on_fire: FireCallback) -> None:
        """Route fired alerts to `on_fire` (the engine's handle_notification)."""
        self._on_fire = on_fire

    def _queue(self) -> JobQueue:
        if self._job_queue is None:
            raise SchedulingError(
                "JobQueue unavailable; install python-telegram-bot[job-queue]"
            )
        return self._job_queue

    def schedule(self, notification_id: str, fire_at: datetime, title: str, body: str) -> None:
        queue = self._queue()
        self.cancel(notification_id)
        now = datetime.now(fire_at.tzinfo)
        delay = max((fire_at - now).total_seconds(), 0.0)
        try:
            queue.run_once(
                self._fire,
                when=delay,
                name=notification_id,
                data={"title": title, "body": body, "silent": False},
            )
        except Exception as exc:
            raise SchedulingError(f"Could not schedule {notification_id!r}: {exc}") from exc
        logger.info("Alert %r queued in %.0fs", notification_id, delay)

    def schedule_daily(self, notification_id: str, at: time, title: str, body: str) -> None:
        queue = self._queue()
        self.cancel(notification_id)
        try:
            queue.run_daily(
                self._fire,
                time=at.replace(tzinfo=self._tz),
                name=notification_id,
                data={"title": title, "body": body, "silent": True},
            )
        except Exception as exc:
            raise SchedulingError(f"Could not schedule {notification_id!r}: {exc}") from exc
        logger.info("Daily alert %r queued at %s", notification_id, at.strftime("%H:%M"))

    def cancel(self, notification_id: str) -> None:
        if self._job_queue is None:
            return
        for job in self._job_queue.get_jobs_by_name(notification_id):
            job.schedule_removal()

    async def send_message(self, user_id: int, text: str) -> None:
        keyboard = InlineKeyboardMarkup(
            [[InlineKeyboardButton("Dismiss", callback_data=DISMISS_CALLBACK)]]
        )
        await self._bot.send_message(chat_id=user_id, text=text, reply_markup=keyboard)

    async def _fire(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        job = context.job
        data = job.data or {}

        if self._on_fire is not None:
            self._on_fire(job.name, datetime.now(self._tz))

        if data.get("silent"):
            return

        text = f"{data.get('title', '')}\n{data.get('body', '')}".strip()
        for chat_id in self._chat_ids:
            try:
                await self.send_message(chat_id, text)
            except Exception as exc:
                logger.error("Failed to deliver %r to %d: %s", job.name, chat_id, exc)
