from loguru import logger
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from dompet.bot.formatter import format_reply
from dompet.config import get_settings
from dompet.deps import confirmations, processor, repos
from dompet.services.debt import get_debts_list
from dompet.services.target import get_daily_target
from dompet.services.transaction import get_summary

settings = get_settings()

# Inline buttons answer a pending delete with the same words a user would type
CALLBACK_REPLIES = {"confirm_yes": "ya", "confirm_no": "batal"}

REKAP_PERIODS = {
    "kemarin": "yesterday",
    "minggu": "this_week",
    "bulan": "this_month",
}

CONFIRM_KEYBOARD = InlineKeyboardMarkup(
    [
        [
            InlineKeyboardButton("Ya, hapus ✓", callback_data="confirm_yes"),
            InlineKeyboardButton("Batal ✗", callback_data="confirm_no"),
        ]
    ]
)


def _user_for(update: Update):
    tg_user = update.effective_user
    return repos.users.get_or_create(str(tg_user.id), tg_user.first_name or "Driver")


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Halo bos! Gue Dompet, asisten catatan keuangan lo.\n\n"
        "Tinggal chat aja kayak biasa:\n"
        "• <i>makan 25rb, bensin 30rb</i>\n"
        "• <i>dapet orderan 59rb</i>\n"
        "• <i>Andi minjem 200rb</i>\n"
        "• <i>cicilan motor 50rb per hari</i>\n"
        "• <i>hapus yang terakhir</i>\n\n"
        "Perintah:\n"
        "/rekap — Rekap hari ini (/rekap kemarin, minggu, bulan)\n"
        "/hutang — Daftar hutang/piutang\n"
        "/target — Target harian\n"
        "/help — Bantuan",
        parse_mode=ParseMode.HTML,
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await start_command(update, context)


async def rekap_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    period = "today"
    if context.args:
        period = REKAP_PERIODS.get(context.args[0].lower(), "today")
    result = get_summary(repos, _user_for(update), {"period": period})
    await update.message.reply_text(format_reply([result]), parse_mode=ParseMode.HTML)


async def hutang_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    result = get_debts_list(repos, _user_for(update), {"type": "all"})
    await update.message.reply_text(format_reply([result]), parse_mode=ParseMode.HTML)


async def target_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    result = get_daily_target(repos, _user_for(update))
    await update.message.reply_text(format_reply([result]), parse_mode=ParseMode.HTML)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Main entry point for free-text messages."""
    message = update.message
    tg_user = update.effective_user
    logger.info("Telegram message from {}: {}", tg_user.id, message.text)

    await message.chat.send_action("typing")

    reply = await processor.handle(
        str(tg_user.id),
        message.text,
        display_name=tg_user.first_name or "Driver",
        chat_id=message.chat_id,
        message_id=message.message_id,
    )
    if not reply:
        return

    # Only a freshly proposed delete leaves a pending entry behind
    user = repos.users.get_by_telegram(str(tg_user.id))
    keyboard = None
    if user is not None and await confirmations.get(user.id) is not None:
        keyboard = CONFIRM_KEYBOARD

    await message.reply_text(reply, parse_mode=ParseMode.HTML, reply_markup=keyboard)


async def handle_confirmation(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle Yes/No button presses on a delete prompt."""
    query = update.callback_query
    await query.answer()

    answer = CALLBACK_REPLIES.get(query.data)
    if answer is None:
        logger.warning("Unknown callback data: {}", query.data)
        return

    await query.edit_message_reply_markup(reply_markup=None)

    # Pressing a button after the window closed must not run "ya" through the pipeline
    user = _user_for(update)
    if await confirmations.get(user.id) is None:
        await query.message.reply_text("⌛ Konfirmasinya udah kadaluarsa. Ulangi perintah hapusnya ya.")
        return

    tg_user = update.effective_user
    reply = await processor.handle(
        str(tg_user.id), answer, display_name=tg_user.first_name or "Driver"
    )
    if reply:
        await query.message.reply_text(reply, parse_mode=ParseMode.HTML)


def build_bot_app() -> Application:
    """Build and return the Telegram bot application."""
    app = Application.builder().token(settings.telegram_bot_token).build()

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("rekap", rekap_command))
    app.add_handler(CommandHandler("hutang", hutang_command))
    app.add_handler(CommandHandler("target", target_command))

    app.add_handler(CallbackQueryHandler(handle_confirmation, pattern=r"^confirm_"))

    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    return app
