# handlers/commands.py
# -*- coding: utf-8 -*-
"""
Handlers for informational commands: /start, /help, /moods, /promo,
/leaderboard, /points and the admin-only /status.
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes
from telegram.constants import ParseMode
from api.gemini_api import generate_promo_message
from config import ADMIN_ID_INT, LEADERBOARD_SIZE
from services.errors import GenerationError
from ui.messages import (
    WELCOME_TEXT, HELP_TEXT, format_moods_message, format_leaderboard,
    format_points, format_status, format_generation_error,
)
from utils.html_helpers import convert_basic_markdown_to_html
from utils.prompt_helpers import detect_language
from handlers.generation import get_services

logger = logging.getLogger(__name__)


# ================================== start(): Handles /start command ==================================
async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message or not update.effective_user:
        return
    logger.info(f"/start from {update.effective_user.id}")
    await update.message.reply_text(WELCOME_TEXT, parse_mode=ParseMode.HTML, disable_web_page_preview=True)
# ================================== start() end ==================================


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message:
        return
    await update.message.reply_text(HELP_TEXT, parse_mode=ParseMode.HTML)


async def moods_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message:
        return
    await update.message.reply_text(format_moods_message(), parse_mode=ParseMode.HTML)


# ================================== promo_command(): Sends a fresh promo message ==================================
async def promo_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message:
        return
    language = detect_language(update.message.text or "")
    try:
        promo = await generate_promo_message(language)
    except GenerationError as e:
        logger.error(f"Ошибка генерации промо ({language}): {e.detail}")
        await update.message.reply_text(format_generation_error(e))
        return
    await update.message.reply_text(convert_basic_markdown_to_html(promo), parse_mode=ParseMode.HTML, disable_web_page_preview=True)
# ================================== promo_command() end ==================================


async def leaderboard_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message:
        return
    entries = get_services(context).points.top(LEADERBOARD_SIZE)
    await update.message.reply_text(format_leaderboard(entries), parse_mode=ParseMode.HTML)


async def points_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message or not update.effective_user:
        return
    services = get_services(context)
    user_id = update.effective_user.id
    await update.message.reply_text(
        format_points(services.points.total(user_id), services.admission.remaining_today(user_id)),
        parse_mode=ParseMode.HTML,
    )


# ================================== status_command(): Admin-only operational snapshot ==================================
async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not update.message or not update.effective_user:
        return
    if not ADMIN_ID_INT or update.effective_user.id != ADMIN_ID_INT:
        logger.warning(f"/status denied for {update.effective_user.id}")
        return
    await update.message.reply_text(format_status(get_services(context)), parse_mode=ParseMode.HTML)
# ================================== status_command() end ==================================

# handlers/commands.py end
