"""
Can Freed Chill? — Telegram Bot.

Telegram is the only user interface. Family and friends use it to check
whether a day or range is free; admins use it to add and remove busy
periods.

Admin commands from anyone else are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.helpers import escape_markdown
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from src.config import settings
from src.core.availability import check_range, describe_day, describe_range, render_month
from src.core.recurrence import (
    busy_periods,
    generate_calendar_month,
    get_day_availability,
    update_calendar_availability,
)
from src.core.schedule_input import parse_day, parse_month, parse_schedule_args
from src.data.models import TYPE_PARENTING, ScheduleRecord
from src.ports.schedule_port import ScheduleStoreError

if TYPE_CHECKING:
    from src.ports.schedule_port import SchedulePort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator for admin commands
# ---------------------------------------------------------------------------


def _is_admin(user) -> bool:
    return user is not None and user.id in settings.ADMIN_USER_IDS


def admin_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores admin commands from other users.

    Does NOT reply to non-admins, so the editing commands stay invisible.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if not _is_admin(user):
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized admin command from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _today():
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def _load_schedules(context: ContextTypes.DEFAULT_TYPE) -> list[ScheduleRecord]:
    """Read a fresh snapshot of all schedules from the injected store."""
    store: SchedulePort = context.bot_data["store"]
    return store.list_schedules()


def _format_schedule(schedule: ScheduleRecord) -> str:
    """One-line summary of a schedule for the admin list."""
    fmt = "%a %d %b %Y %H:%M"
    line = f"{schedule.start_date.strftime(fmt)} → {schedule.end_date.strftime(fmt)}"
    if schedule.is_repeating:
        if schedule.repeat_until is not None:
            line += f", {schedule.repeat} until {schedule.repeat_until.date().isoformat()}"
        else:
            line += f", {schedule.repeat} indefinitely"
    if schedule.type and schedule.type != TYPE_PARENTING:
        line += f" [{schedule.type}]"
    if schedule.notes:
        line += f" — {schedule.notes}"
    return line


# ---------------------------------------------------------------------------
# Visitor commands
# ---------------------------------------------------------------------------


async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    name = escape_markdown(settings.PARENT_NAME)
    await update.message.reply_text(
        f"Welcome! Wondering whether *{name}* can chill?\n\n"
        "• /check 2024-03-01 2024-03-05 — is this period free?\n"
        "• /day 2024-03-01 — morning / afternoon / evening breakdown\n"
        "• /month 2024-03 — calendar view\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    text = (
        "*Available commands:*\n"
        "/check <date> [<date>] — Is the day or range free?\n"
        "/day <date> — Availability per part of the day\n"
        "/month [YYYY-MM] — Calendar for a month (default: this month)\n"
        "/help — Show this message"
    )
    if _is_admin(update.effective_user):
        text += (
            "\n\n*Admin:*\n"
            "/schedules — List busy periods\n"
            "/addbusy — Add a busy period (send without arguments for usage)\n"
            "/removebusy [id] — Remove a busy period"
        )
    await update.message.reply_text(text, parse_mode="Markdown")


async def cmd_check(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /check <date> [<date>] — availability of a day or range."""
    args = context.args or []
    if not args or len(args) > 2:
        await update.message.reply_text("Usage: /check <YYYY-MM-DD> [<YYYY-MM-DD>]")
        return

    try:
        days = [parse_day(a) for a in args]
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return

    try:
        schedules = _load_schedules(context)
    except ScheduleStoreError as exc:
        logger.error("/check store error: %s", exc)
        await update.message.reply_text("Couldn't load the schedule. Please try again later.")
        return

    result = check_range(schedules, *days)
    await update.message.reply_text(describe_range(result, settings.PARENT_NAME))


async def cmd_day(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /day [<date>] — morning / afternoon / evening breakdown."""
    args = context.args or []
    try:
        day = parse_day(args[0]) if args else _today()
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return

    try:
        schedules = _load_schedules(context)
    except ScheduleStoreError as exc:
        logger.error("/day store error: %s", exc)
        await update.message.reply_text("Couldn't load the schedule. Please try again later.")
        return

    availability = get_day_availability(day, busy_periods(schedules))
    await update.message.reply_text(
        describe_day(day, availability, escape_markdown(settings.PARENT_NAME)),
        parse_mode="Markdown",
    )


async def cmd_month(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /month [YYYY-MM] — annotated calendar month."""
    args = context.args or []
    today = _today()
    try:
        year, month = parse_month(args[0]) if args else (today.year, today.month)
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return

    try:
        schedules = _load_schedules(context)
    except ScheduleStoreError as exc:
        logger.error("/month store error: %s", exc)
        await update.message.reply_text("Couldn't load the schedule. Please try again later.")
        return

    grid = generate_calendar_month(year, month, today=today)
    grid = update_calendar_availability(grid, busy_periods(schedules))
    title = datetime(year, month, 1).strftime("%B %Y")
    await update.message.reply_text(
        f"```\n{render_month(grid, title)}\n```",
        parse_mode="Markdown",
    )


# ---------------------------------------------------------------------------
# Admin commands
# ---------------------------------------------------------------------------


@admin_only
async def cmd_schedules(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /schedules — list every stored busy period with its ID."""
    try:
        schedules = _load_schedules(context)
    except ScheduleStoreError as exc:
        logger.error("/schedules store error: %s", exc)
        await update.message.reply_text("Couldn't load the schedule. Please try again later.")
        return

    if not schedules:
        await update.message.reply_text("No busy periods scheduled.")
        return

    lines = ["Busy periods:\n"]
    for s in schedules:
        lines.append(f"{s.id}\n  {_format_schedule(s)}")
    await update.message.reply_text("\n".join(lines))


@admin_only
async def cmd_addbusy(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addbusy ... — validate and store a new busy period."""
    try:
        parsed = parse_schedule_args(context.args or [])
    except ValueError as exc:
        await update.message.reply_text(str(exc))
        return

    store: SchedulePort = context.bot_data["store"]
    try:
        created = store.add_schedule(
            start_date=parsed.start_date,
            end_date=parsed.end_date,
            repeat=parsed.repeat,
            repeat_until=parsed.repeat_until,
            type=parsed.type,
            notes=parsed.notes,
        )
    except ScheduleStoreError as exc:
        logger.error("/addbusy store error: %s", exc)
        await update.message.reply_text("Couldn't save the busy period. Please try again later.")
        return

    await update.message.reply_text(f"✅ Added: {_format_schedule(created)}\nID: {created.id}")


@admin_only
async def cmd_removebusy(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /removebusy [id] — delete by ID, or pick from buttons."""
    store: SchedulePort = context.bot_data["store"]
    args = context.args or []

    try:
        if args:
            schedule_id = args[0].strip()
            if store.delete_schedule(schedule_id):
                await update.message.reply_text(f"✅ Removed busy period {schedule_id}.")
            else:
                await update.message.reply_text(
                    f"No busy period with ID {schedule_id}. Use /schedules to see IDs."
                )
            return

        schedules = store.list_schedules()
    except ScheduleStoreError as exc:
        logger.error("/removebusy store error: %s", exc)
        await update.message.reply_text("Couldn't update the schedule. Please try again later.")
        return

    if not schedules:
        await update.message.reply_text("No busy periods to remove.")
        return

    keyboard = [
        [InlineKeyboardButton(_format_schedule(s), callback_data=f"delbusy:{s.id}")]
        for s in schedules
    ]
    await update.message.reply_text(
        "Which busy period do you want to remove?",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_removebusy_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the inline button tap to remove a busy period."""
    store: SchedulePort = context.bot_data["store"]

    query = update.callback_query
    await query.answer()

    if not _is_admin(query.from_user):
        return

    schedule_id = query.data.split(":", 1)[1]

    try:
        schedule = store.get_schedule(schedule_id)
        if schedule is None:
            await query.edit_message_text("Busy period not found or already removed.")
            return
        deleted = store.delete_schedule(schedule_id)
    except ScheduleStoreError as exc:
        logger.error("removebusy callback error: %s", exc)
        await query.edit_message_text("Something went wrong. Please try again.")
        return

    if not deleted:
        await query.edit_message_text("Busy period not found or already removed.")
        return

    await query.edit_message_text(f"✅ Removed: {_format_schedule(schedule)}")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(store: SchedulePort | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Schedule port implementation. Defaults to the SQLite ScheduleDB.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if store is None:
        from src.data.db import ScheduleDB
        store = ScheduleDB()

    app.bot_data["store"] = store

    # Visitor commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("check", cmd_check))
    app.add_handler(CommandHandler("day", cmd_day))
    app.add_handler(CommandHandler("month", cmd_month))

    # Admin commands
    app.add_handler(CommandHandler("schedules", cmd_schedules))
    app.add_handler(CommandHandler("addbusy", cmd_addbusy))
    app.add_handler(CommandHandler("removebusy", cmd_removebusy))
    app.add_handler(CallbackQueryHandler(_handle_removebusy_callback, pattern=r"^delbusy:\w+$"))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Can Freed Chill? bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
