"""
Hydration Tracker — Telegram Bot.

The front end of the tracker: every user intent (log a drink, delete a
record, change settings, dismiss a reminder) arrives here as a command
and is handed to the HydrationEngine. Reminders come back as messages
from the TelegramNotifier.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from hydration.adapters.telegram_notifier import DISMISS_CALLBACK
from hydration.config import settings
from hydration.core.clock import relative_time
from hydration.core.errors import DuplicateRecordError, HydrationError, NotFoundError
from hydration.data.models import Accent, is_sentinel

if TYPE_CHECKING:
    from hydration.core.engine import HydrationEngine
    from hydration.ports.persistence_port import PersistencePort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def _now() -> datetime:
    return datetime.now(_tz())


def _engine(context: ContextTypes.DEFAULT_TYPE) -> HydrationEngine:
    return context.bot_data["engine"]


def _parse_number(args: list[str] | None) -> float | None:
    """First command argument as a positive number, or None."""
    if not args:
        return None
    try:
        value = float(args[0].lower().removesuffix("ml").replace(",", "."))
    except ValueError:
        return None
    return value if value > 0 else None


def _format_volume(volume: float) -> str:
    return f"{volume:,.0f} mL"


def _format_status(engine: HydrationEngine, now: datetime) -> str:
    """Plain-text summary of today's progress."""
    proj = engine.projection(now)
    remaining = engine.remainder(now)
    lines = [
        f"Today: *{_format_volume(proj.todays_total)}* of {_format_volume(proj.target)} "
        f"({proj.percent_complete * 100:.0f}%)",
    ]
    if remaining > 0:
        lines.append(f"Still to drink: {_format_volume(remaining)}")
    else:
        lines.append("Daily target reached 🎉")

    last = engine.most_recent()
    if is_sentinel(last):
        lines.append("No drinks logged yet.")
    else:
        lines.append(
            f"Last drink: {_format_volume(last.volume)}, {relative_time(last.date, now)}"
        )

    if engine.next_fire_at is not None:
        lines.append(f"Next reminder: {engine.next_fire_at.astimezone(_tz()).strftime('%H:%M')}")
    if proj.reminder_active:
        lines.append("⏰ Time to drink!")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *Hydration Tracker*!\n\n"
        "• Use /drink 250 to log a drink\n"
        "• Use /status to see today's progress\n"
        "• I'll remind you when it's time for the next sip\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/drink [ml] — Log a drink (default "
        f"{settings.DEFAULT_DRINK_ML:.0f} mL)\n"
        "/status — Today's progress\n"
        "/today — Today's drinks, tap one to delete it\n"
        "/week — Totals per day\n"
        "/target <ml> — Set the daily target\n"
        "/interval <minutes> — Longest gap between reminders (20–120)\n"
        "/accent <color> — Pick an accent color\n"
        "/retention <days> — How many days of history to keep\n"
        "/dismiss — Dismiss the current reminder\n"
        "/resetsettings — Restore default settings\n"
        "/cleardata — Delete all drinks\n"
        "/resetall — Both of the above\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_drink(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /drink [ml] — log an intake."""
    engine = _engine(context)
    if context.args:
        volume = _parse_number(context.args)
        if volume is None:
            await update.message.reply_text("Usage: /drink <ml>, e.g. /drink 300")
            return
    else:
        volume = settings.DEFAULT_DRINK_ML

    now = _now()
    try:
        try:
            engine.register_intake(volume, now)
        except DuplicateRecordError:
            # Another drink holds this exact timestamp
            now += timedelta(microseconds=1)
            engine.register_intake(volume, now)
    except HydrationError as exc:
        logger.error("/drink error: %s", exc)
        await update.message.reply_text("Couldn't log that drink. Please try again.")
        return

    await update.message.reply_text(
        f"✅ Logged {_format_volume(volume)}.\n\n{_format_status(engine, now)}",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status — today's progress."""
    await update.message.reply_text(
        _format_status(_engine(context), _now()), parse_mode="Markdown",
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — list today's drinks as delete buttons."""
    records = _engine(context).todays_records(_now())
    if not records:
        await update.message.reply_text("No drinks logged today.")
        return

    keyboard = [
        [InlineKeyboardButton(
            f"{_format_volume(r.volume)} at {r.date.astimezone(_tz()).strftime('%H:%M')}",
            callback_data=f"delrec:{r.id}",
        )]
        for r in records
    ]
    await update.message.reply_text(
        "Today's drinks (tap one to delete it):",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_delete_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the inline button tap to delete a record."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return

    record_id = query.data.split(":", 1)[1]
    try:
        record = _engine(context).delete_record(record_id)
    except NotFoundError:
        await query.edit_message_text("Drink not found or already deleted.")
        return

    await query.edit_message_text(
        f"✅ Deleted {_format_volume(record.volume)} from "
        f"{record.date.astimezone(_tz()).strftime('%H:%M')}."
    )


@authorized_only
async def cmd_week(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /week — per-day totals, newest first."""
    engine = _engine(context)
    totals = engine.weekly_totals(_tz())
    if not totals:
        await update.message.reply_text("No drinks recorded yet.")
        return

    target = engine.settings().target
    lines = ["*Daily totals:*\n"]
    for day, volume in sorted(totals.items(), reverse=True):
        mark = "✅" if volume >= target else "▫️"
        lines.append(f"{mark} {day.strftime('%a %d %b')} — {_format_volume(volume)}")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_target(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /target <ml>."""
    value = _parse_number(context.args)
    if value is None:
        await update.message.reply_text("Usage: /target <ml>, e.g. /target 2500")
        return
    target = _engine(context).set_target(value)
    await update.message.reply_text(f"Daily target set to {_format_volume(target)}.")


@authorized_only
async def cmd_interval(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /interval <minutes> — the value is clamped to 20–120 minutes."""
    minutes = _parse_number(context.args)
    if minutes is None:
        await update.message.reply_text("Usage: /interval <minutes>, e.g. /interval 60")
        return
    seconds = _engine(context).set_reminder_interval(minutes * 60)
    await update.message.reply_text(
        f"Reminders at least every {seconds / 60:.0f} minutes."
    )


@authorized_only
async def cmd_accent(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /accent <color>."""
    choices = ", ".join(a.value for a in Accent)
    if not context.args:
        await update.message.reply_text(f"Usage: /accent <color>\nColors: {choices}")
        return
    try:
        accent = _engine(context).set_accent(context.args[0])
    except HydrationError:
        await update.message.reply_text(f"Unknown color. Choose one of: {choices}")
        return
    await update.message.reply_text(f"Accent set to {accent.value}.")


@authorized_only
async def cmd_retention(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /retention <days>."""
    days = _parse_number(context.args)
    if days is None:
        await update.message.reply_text("Usage: /retention <days>, e.g. /retention 7")
        return
    kept = _engine(context).set_retention_days(days)
    await update.message.reply_text(f"Keeping {kept:g} days of history.")


@authorized_only
async def cmd_dismiss(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dismiss — clear the time-to-drink condition."""
    _engine(context).dismiss_reminder()
    await update.message.reply_text("Reminder dismissed.")


async def _handle_dismiss_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the "Dismiss" button attached to reminder messages."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return

    _engine(context).dismiss_reminder()
    await query.edit_message_reply_markup(reply_markup=None)


@authorized_only
async def cmd_resetsettings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resetsettings."""
    _engine(context).restore_defaults()
    await update.message.reply_text("Settings restored to defaults.")


@authorized_only
async def cmd_cleardata(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cleardata — delete every record, keep settings."""
    removed = _engine(context).erase_records()
    await update.message.reply_text(f"Deleted {removed} drink(s).")


@authorized_only
async def cmd_resetall(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resetall — defaults plus an empty history."""
    removed = _engine(context).reset_all()
    await update.message.reply_text(
        f"Settings restored and {removed} drink(s) deleted."
    )


# ---------------------------------------------------------------------------
# Application wiring
# ---------------------------------------------------------------------------


def build_app(store: PersistencePort | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Persistence port implementation. Defaults to the backend
               named by STORAGE_BACKEND.
    """
    from hydration.adapters.telegram_notifier import TelegramNotifier
    from hydration.core.engine import HydrationEngine, load_state, persist_to

    if store is None:
        from hydration.adapters.store_factory import create_snapshot_store
        store = create_snapshot_store()

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).post_init(_post_init).build()

    notifier = TelegramNotifier(app.bot, app.job_queue, settings.ALLOWED_USER_IDS, _tz())
    engine = HydrationEngine(
        load_state(store),
        notifier,
        rollover_at=dt_time(hour=settings.ROLLOVER_HOUR, minute=settings.ROLLOVER_MINUTE),
    )
    engine.subscribe(persist_to(store))
    notifier.bind(engine.handle_notification)

    app.bot_data["engine"] = engine
    app.bot_data["notifier"] = notifier

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("drink", cmd_drink))
    app.add_handler(CommandHandler("status", cmd_status))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("week", cmd_week))
    app.add_handler(CommandHandler("target", cmd_target))
    app.add_handler(CommandHandler("interval", cmd_interval))
    app.add_handler(CommandHandler("accent", cmd_accent))
    app.add_handler(CommandHandler("retention", cmd_retention))
    app.add_handler(CommandHandler("dismiss", cmd_dismiss))
    app.add_handler(CommandHandler("resetsettings", cmd_resetsettings))
    app.add_handler(CommandHandler("cleardata", cmd_cleardata))
    app.add_handler(CommandHandler("resetall", cmd_resetall))
    app.add_handler(CallbackQueryHandler(_handle_delete_callback, pattern=r"^delrec:\w+$"))
    app.add_handler(CallbackQueryHandler(_handle_dismiss_callback, pattern=rf"^{DISMISS_CALLBACK}$"))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


async def _post_init(app: Application) -> None:
    """Start the engine once the JobQueue can accept jobs."""
    app.bot_data["engine"].start(_now())
    logger.info("Hydration engine started (timezone %s)", settings.TIMEZONE)


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Hydration Tracker bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
