"""Tests for hydration.bot.telegram_bot — Telegram bot handlers.

Handlers run against a real HydrationEngine wired to the in-memory
notifier double; Telegram objects are mocked.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hydration.bot.telegram_bot import (
    _format_status,
    _handle_delete_callback,
    _handle_dismiss_callback,
    _parse_number,
    cmd_accent,
    cmd_cleardata,
    cmd_dismiss,
    cmd_drink,
    cmd_interval,
    cmd_resetall,
    cmd_status,
    cmd_target,
    cmd_today,
    cmd_week,
)
from hydration.data.models import Accent
from hydration.ports.notification_port import REMINDER_ID


def _make_update(user_id=12345):
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.reply_text = AsyncMock()
    return update


def _make_context(engine, args=None):
    context = MagicMock()
    context.args = args or []
    context.bot_data = {"engine": engine}
    return context


def _make_query(data, user_id=12345):
    update = MagicMock()
    query = update.callback_query
    query.data = data
    query.from_user.id = user_id
    query.answer = AsyncMock()
    query.edit_message_text = AsyncMock()
    query.edit_message_reply_markup = AsyncMock()
    return update, query


def _reply_text(update):
    return update.message.reply_text.call_args[0][0]


class TestParseNumber:
    def test_plain(self):
        assert _parse_number(["300"]) == 300

    def test_suffix_and_comma(self):
        assert _parse_number(["250ml"]) == 250
        assert _parse_number(["0,5"]) == 0.5

    def test_invalid(self):
        assert _parse_number([]) is None
        assert _parse_number(None) is None
        assert _parse_number(["abc"]) is None
        assert _parse_number(["-5"]) is None
        assert _parse_number(["0"]) is None


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_unauthorized_user_ignored(self, engine):
        update = _make_update(user_id=999)
        await cmd_drink(update, _make_context(engine, ["300"]))
        update.message.reply_text.assert_not_called()
        assert engine.records() == ()


class TestDrink:
    @pytest.mark.asyncio
    async def test_logs_given_volume(self, engine, notifier):
        update = _make_update()
        await cmd_drink(update, _make_context(engine, ["300"]))
        assert [r.volume for r in engine.records()] == [300]
        assert "Logged 300 mL" in _reply_text(update)
        assert REMINDER_ID in notifier.scheduled

    @pytest.mark.asyncio
    async def test_default_volume(self, engine):
        update = _make_update()
        await cmd_drink(update, _make_context(engine))
        assert [r.volume for r in engine.records()] == [250]

    @pytest.mark.asyncio
    async def test_same_timestamp_is_shifted(self, engine):
        now = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        engine.register_intake(250, now)
        update = _make_update()
        with patch("hydration.bot.telegram_bot._now", return_value=now):
            await cmd_drink(update, _make_context(engine, ["300"]))
        dates = sorted(r.date for r in engine.records())
        assert dates == [now, now + timedelta(microseconds=1)]
        assert "Logged 300 mL" in _reply_text(update)

    @pytest.mark.asyncio
    async def test_bad_argument(self, engine):
        update = _make_update()
        await cmd_drink(update, _make_context(engine, ["lots"]))
        assert "Usage" in _reply_text(update)
        assert engine.records() == ()


class TestStatus:
    @pytest.mark.asyncio
    async def test_empty_status(self, engine):
        update = _make_update()
        await cmd_status(update, _make_context(engine))
        text = _reply_text(update)
        assert "0 mL" in text
        assert "No drinks logged yet." in text

    def test_format_status_with_progress(self, engine):
        now = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)
        engine.register_intake(500, now, at=now - timedelta(hours=2))
        engine.register_intake(500, now)
        text = _format_status(engine, now)
        assert "1,000 mL" in text
        assert "3,000 mL" in text
        assert "(33%)" in text
        assert "Still to drink: 2,000 mL" in text
        assert "Next reminder" in text

    def test_format_status_goal_reached(self, engine):
        now = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)
        engine.register_intake(3200, now)
        assert "Daily target reached" in _format_status(engine, now)


class TestTodayAndDelete:
    @pytest.mark.asyncio
    async def test_today_lists_buttons(self, engine):
        with patch("hydration.bot.telegram_bot._now", return_value=datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)):
            record, _ = engine.register_intake(250, datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc))
            update = _make_update()
            await cmd_today(update, _make_context(engine))
        markup = update.message.reply_text.call_args.kwargs["reply_markup"]
        button = markup.inline_keyboard[0][0]
        assert button.callback_data == f"delrec:{record.id}"
        assert "09:30" in button.text

    @pytest.mark.asyncio
    async def test_today_empty(self, engine):
        update = _make_update()
        await cmd_today(update, _make_context(engine))
        assert _reply_text(update) == "No drinks logged today."

    @pytest.mark.asyncio
    async def test_delete_callback(self, engine):
        record, _ = engine.register_intake(250, datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc))
        update, query = _make_query(f"delrec:{record.id}")
        await _handle_delete_callback(update, _make_context(engine))
        assert engine.records() == ()
        assert "Deleted 250 mL" in query.edit_message_text.call_args[0][0]

    @pytest.mark.asyncio
    async def test_delete_callback_missing(self, engine):
        update, query = _make_query("delrec:gone")
        await _handle_delete_callback(update, _make_context(engine))
        query.edit_message_text.assert_awaited_once_with("Drink not found or already deleted.")

    @pytest.mark.asyncio
    async def test_delete_callback_unauthorized(self, engine):
        record, _ = engine.register_intake(250, datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc))
        update, query = _make_query(f"delrec:{record.id}", user_id=999)
        await _handle_delete_callback(update, _make_context(engine))
        assert len(engine.records()) == 1


class TestWeek:
    @pytest.mark.asyncio
    async def test_lists_days_newest_first(self, engine):
        engine.register_intake(3000, datetime(2025, 1, 14, 9, 0, tzinfo=timezone.utc))
        engine.register_intake(500, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
        update = _make_update()
        await cmd_week(update, _make_context(engine))
        lines = _reply_text(update).splitlines()
        assert "15 Jan" in lines[2]
        assert "14 Jan" in lines[3]
        assert lines[3].startswith("✅")

    @pytest.mark.asyncio
    async def test_no_records(self, engine):
        update = _make_update()
        await cmd_week(update, _make_context(engine))
        assert _reply_text(update) == "No drinks recorded yet."


class TestSettingsCommands:
    @pytest.mark.asyncio
    async def test_target(self, engine):
        update = _make_update()
        await cmd_target(update, _make_context(engine, ["2500"]))
        assert engine.settings().target == 2500

    @pytest.mark.asyncio
    async def test_interval_is_clamped(self, engine):
        update = _make_update()
        await cmd_interval(update, _make_context(engine, ["5"]))
        assert engine.settings().reminder_interval == 1200
        assert "20 minutes" in _reply_text(update)

    @pytest.mark.asyncio
    async def test_accent(self, engine):
        update = _make_update()
        await cmd_accent(update, _make_context(engine, ["Orange"]))
        assert engine.settings().accent is Accent.ORANGE

    @pytest.mark.asyncio
    async def test_unknown_accent(self, engine):
        update = _make_update()
        await cmd_accent(update, _make_context(engine, ["magenta"]))
        assert engine.settings().accent is Accent.INDIGO
        assert "Unknown color" in _reply_text(update)


class TestDismissAndErase:
    @pytest.mark.asyncio
    async def test_dismiss_command(self, engine):
        engine.register_intake(250, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
        engine.on_reminder_fired()
        update = _make_update()
        await cmd_dismiss(update, _make_context(engine))
        assert engine.banner_visible is False

    @pytest.mark.asyncio
    async def test_dismiss_button(self, engine):
        engine.register_intake(250, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
        engine.on_reminder_fired()
        update, query = _make_query("dismiss")
        await _handle_dismiss_callback(update, _make_context(engine))
        assert engine.banner_visible is False
        query.edit_message_reply_markup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleardata(self, engine):
        engine.set_target(2000)
        engine.register_intake(250, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
        update = _make_update()
        await cmd_cleardata(update, _make_context(engine))
        assert engine.records() == ()
        assert engine.settings().target == 2000
        assert _reply_text(update) == "Deleted 1 drink(s)."

    @pytest.mark.asyncio
    async def test_resetall(self, engine):
        engine.set_target(2000)
        engine.register_intake(250, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
        update = _make_update()
        await cmd_resetall(update, _make_context(engine))
        assert engine.records() == ()
        assert engine.settings().target == 3000
