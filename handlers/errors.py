# handlers/errors.py
# -*- coding: utf-8 -*-
"""
Global error handler for the Telegram bot application and operator escalation.
"""

import logging
import html
import traceback
from typing import Optional
from telegram import Bot, Update
from telegram.ext import ContextTypes
from telegram.constants import ParseMode
from telegram.error import TelegramError
from config import ADMIN_ID_INT

logger = logging.getLogger(__name__)


# ================================== notify_admin(): Sends an HTML message to the operator chat ==================================
async def notify_admin(bot: Bot, text: str, admin_id: Optional[int] = ADMIN_ID_INT) -> bool:
    if not admin_id:
        logger.warning(f"Admin not configured, escalation dropped: {text[:200]}")
        return False
    try:
        await bot.send_message(chat_id=admin_id, text=text[:4096], parse_mode=ParseMode.HTML)
        return True
    except TelegramError as e:
        logger.error(f"Не удалось уведомить админа ({admin_id}): {e}")
        return False
# ================================== notify_admin() end ==================================


# ================================== error_handler(): Global error handler ==================================
async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    logger.error(f"Исключение при обработке обновления {update}", exc_info=context.error)
    if not ADMIN_ID_INT:
        return
    error_type = type(context.error).__name__
    error_str = str(context.error)
    escaped_error = html.escape(error_str[:1000]) + ('...' if len(error_str) > 1000 else '')
    if isinstance(update, Update):
        user_info = f"User: {update.effective_user.id}" if update.effective_user else "User: N/A"
        chat_info = f"Chat: {update.effective_chat.id}" if update.effective_chat else "Chat: N/A"
        update_details = f"{user_info}, {chat_info}"
    else:
        update_details = str(update)[:500]
    tb_string = "".join(traceback.format_exception(None, context.error, context.error.__traceback__))
    admin_msg = (
        f"🆘 Обнаружена ошибка бота!\n\n"
        f"<b>Тип Ошибки:</b> {html.escape(error_type)}\n"
        f"<b>Ошибка:</b>\n<pre>{escaped_error}</pre>\n\n"
        f"<b>Обновление:</b>\n<pre>{html.escape(update_details)}</pre>\n\n"
        f"<b>Traceback (последние строки):</b>\n<pre>{html.escape(tb_string[-2000:])}</pre>"
    )
    await notify_admin(context.bot, admin_msg)
# ================================== error_handler() end ==================================

# handlers/errors.py end
