# utils/telegram_helpers.py
# -*- coding: utf-8 -*-
"""
Utility functions for common Telegram bot interactions:
safe message deletion, safe callback answers, channel membership checks.
"""

import logging
from typing import Awaitable, Callable, Optional
from telegram import Bot, CallbackQuery, ChatMember, User
from telegram.ext import ContextTypes
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

MEMBER_STATUSES = (ChatMember.MEMBER, ChatMember.ADMINISTRATOR, ChatMember.OWNER)


# ================================== delete_message_safely(): Safely deletes a message ==================================
async def delete_message_safely(context: ContextTypes.DEFAULT_TYPE, chat_id: Optional[int], message_id: Optional[int]):
    if not message_id or not chat_id:
        logger.debug(f"delete_message_safely неверный chat_id ({chat_id}) или message_id ({message_id}).")
        return
    try:
        await context.bot.delete_message(chat_id=chat_id, message_id=message_id)
        logger.debug(f"Сообщение {message_id} удалено из чата {chat_id}.")
    except TelegramError as e:
        error_msg = str(e).lower()
        if ("message to delete not found" in error_msg or "message can't be deleted" in error_msg or
            "message_id_invalid" in error_msg):
            logger.debug(f"Не удалось удалить {message_id} в {chat_id}: {e}")
        else:
            logger.warning(f"Ошибка TG при удалении {message_id} в {chat_id}: {e}")
# ================================== delete_message_safely() end ==================================


# ================================== answer_callback_safely(): Answers a callback query, ignoring stale ones ==================================
async def answer_callback_safely(query: CallbackQuery, text: Optional[str] = None, show_alert: bool = False):
    try:
        await query.answer(text=text, show_alert=show_alert)
    except TelegramError as e:
        logger.debug(f"Не удалось ответить на callback {query.id}: {e}")
# ================================== answer_callback_safely() end ==================================


def get_display_name(user: Optional[User]) -> Optional[str]:
    if user is None:
        return None
    return user.first_name or user.username or str(user.id)


# ================================== make_membership_checker(): Builds the channel membership check ==================================
def make_membership_checker(bot: Bot, channel_id: Optional[str]) -> Optional[Callable[[int], Awaitable[bool]]]:
    """Returns None when no channel is configured. Telegram errors propagate to the caller."""
    if not channel_id:
        return None
    chat_id = int(channel_id) if channel_id.lstrip("-").isdigit() else channel_id

    async def is_member(user_id: int) -> bool:
        member = await bot.get_chat_member(chat_id=chat_id, user_id=user_id)
        if member.status == ChatMember.RESTRICTED:
            return bool(getattr(member, "is_member", False))
        return member.status in MEMBER_STATUSES

    return is_member
# ================================== make_membership_checker() end ==================================

# utils/telegram_helpers.py end
