"""Tests for hydration.adapters.telegram_notifier — JobQueue-backed alerts."""

from datetime import datetime, time, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from hydration.adapters.telegram_notifier import DISMISS_CALLBACK, TelegramNotifier
from hydration.core.errors import SchedulingError


def _make_notifier(job_queue=None, on_fire=None, chat_ids=(12345,)):
    bot = MagicMock()
    bot.send_message = AsyncMock()
    queue = job_queue if job_queue is not None else MagicMock()
    queue.get_jobs_by_name.return_value = []
    return TelegramNotifier(bot, queue, chat_ids, timezone.utc, on_fire=on_fire), bot, queue


def _make_context(name, data):
    context = MagicMock()
    context.job.name = name
    context.job.data = data
    return context


class TestSchedule:
    def test_run_once_with_delay(self):
        notifier, _, queue = _make_notifier()
        fire_at = datetime.now(timezone.utc) + timedelta(minutes=30)

        notifier.schedule("reminder", fire_at, "Take a Sip", "Last intake was 1 hour ago")

        kwargs = queue.run_once.call_args.kwargs
        assert kwargs["name"] == "reminder"
        assert 1790 <= kwargs["when"] <= 1800
        assert kwargs["data"]["title"] == "Take a Sip"
        assert kwargs["data"]["silent"] is False

    def test_past_fire_time_fires_immediately(self):
        notifier, _, queue = _make_notifier()
        notifier.schedule("reminder", datetime.now(timezone.utc) - timedelta(hours=1), "t", "b")
        assert queue.run_once.call_args.kwargs["when"] == 0.0

    def test_replaces_existing_job(self):
        notifier, _, queue = _make_notifier()
        old_job = MagicMock()
        queue.get_jobs_by_name.return_value = [old_job]
        notifier.schedule("reminder", datetime.now(timezone.utc), "t", "b")
        old_job.schedule_removal.assert_called_once()

    def test_queue_error_becomes_scheduling_error(self):
        notifier, _, queue = _make_notifier()
        queue.run_once.side_effect = RuntimeError("scheduler down")
        with pytest.raises(SchedulingError):
            notifier.schedule("reminder", datetime.now(timezone.utc), "t", "b")

    def test_missing_job_queue(self):
        notifier = TelegramNotifier(MagicMock(), None, [1], timezone.utc)
        with pytest.raises(SchedulingError):
            notifier.schedule("reminder", datetime.now(timezone.utc), "t", "b")
        notifier.cancel("reminder")  # no-op

    def test_schedule_daily_is_silent(self):
        notifier, _, queue = _make_notifier()
        notifier.schedule_daily("rollover", time(0, 5), "Reset Day", "Starting new day")
        kwargs = queue.run_daily.call_args.kwargs
        assert kwargs["name"] == "rollover"
        assert kwargs["time"] == time(0, 5, tzinfo=timezone.utc)
        assert kwargs["data"]["silent"] is True

    def test_cancel_is_idempotent(self):
        notifier, _, queue = _make_notifier()
        notifier.cancel("reminder")
        notifier.cancel("reminder")
        assert queue.get_jobs_by_name.call_count == 2


class TestFire:
    @pytest.mark.asyncio
    async def test_fire_notifies_engine_and_chats(self):
        on_fire = MagicMock()
        notifier, bot, _ = _make_notifier(on_fire=on_fire, chat_ids=(1, 2))
        context = _make_context("reminder", {"title": "Take a Sip", "body": "Last intake was 1 hour ago", "silent": False})

        await notifier._fire(context)

        assert on_fire.call_args[0][0] == "reminder"
        assert bot.send_message.await_count == 2
        kwargs = bot.send_message.call_args.kwargs
        assert kwargs["text"] == "Take a Sip\nLast intake was 1 hour ago"
        button = kwargs["reply_markup"].inline_keyboard[0][0]
        assert button.callback_data == DISMISS_CALLBACK

    @pytest.mark.asyncio
    async def test_silent_fire_sends_nothing(self):
        on_fire = MagicMock()
        notifier, bot, _ = _make_notifier(on_fire=on_fire)
        await notifier._fire(_make_context("rollover", {"title": "Reset Day", "body": "", "silent": True}))
        on_fire.assert_called_once()
        bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_delivery_error_is_logged(self):
        notifier, bot, _ = _make_notifier(chat_ids=(1, 2))
        bot.send_message.side_effect = [Exception("blocked"), None]
        await notifier._fire(_make_context("reminder", {"title": "t", "body": "b", "silent": False}))
        assert bot.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_bind_routes_to_engine(self):
        notifier, _, _ = _make_notifier()
        handler = MagicMock()
        notifier.bind(handler)
        await notifier._fire(_make_context("rollover", {"silent": True}))
        handler.assert_called_once()
