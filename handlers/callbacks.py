# handlers/callbacks.py
# -*- coding: utf-8 -*-
"""
Handles callback queries from the share buttons under generated images:
`share_x|<share_id>` starts the X/Twitter flow, `confirm_x|<token>` awards points.
"""

import logging
from telegram import Update, CallbackQuery
from telegram.ext import ContextTypes
from telegram.constants import ParseMode
from telegram.error import TelegramError
from services.errors import ShareConfirmationError
from services.sharing import ShareChannel
from ui.keyboards import CallbackAction, ParsedCallback, parse_callback_data, generate_link_share_keyboard
from ui.messages import format_link_share_prompt
from utils.telegram_helpers import answer_callback_safely, get_display_name
from handlers.generation import get_services

logger = logging.getLogger(__name__)


# ================================== _handle_share_link(): Issues a link token and sends the intent button ==================================
async def _handle_share_link(query: CallbackQuery, context: ContextTypes.DEFAULT_TYPE, parsed: ParsedCallback):
    sharing = get_services(context).sharing
    user_id = query.from_user.id
    payload = sharing.get_payload(parsed.payload)
    if payload is None:
        await answer_callback_safely(query, "Сообщение не найдено или устарело.", show_alert=True)
        return
    token = sharing.issue_token(user_id, payload.share_id, ShareChannel.LINK)
    if token is None:
        await answer_callback_safely(query, "Вы уже получили баллы за эту публикацию.", show_alert=True)
        return
    await answer_callback_safely(query, "Открываю X для публикации...")
    chat_id = query.message.chat.id if query.message else user_id
    reply_to = query.message.message_id if query.message else None
    await context.bot.send_message(
        chat_id=chat_id,
        text=format_link_share_prompt(payload.link_has_image),
        parse_mode=ParseMode.HTML,
        reply_markup=generate_link_share_keyboard(payload.link_url, token),
        reply_to_message_id=reply_to,
        disable_web_page_preview=True,
    )
    logger.info(f"User {user_id} requested X share for {payload.share_id} (image={payload.link_has_image})")
# ================================== _handle_share_link() end ==================================


# ================================== _handle_confirm_link(): Consumes the token and awards points ==================================
async def _handle_confirm_link(query: CallbackQuery, context: ContextTypes.DEFAULT_TYPE, parsed: ParsedCallback):
    sharing = get_services(context).sharing
    user = query.from_user
    try:
        total = sharing.confirm_share(user.id, ShareChannel.LINK, parsed.payload, get_display_name(user))
    except ShareConfirmationError as e:
        logger.info(f"Rejected X confirmation from {user.id}: {e}")
        await answer_callback_safely(query, "Подтверждение недействительно или уже использовано.", show_alert=True)
        return
    await answer_callback_safely(query, f"+{ShareChannel.LINK.points} балла! У вас теперь {total} баллов за публикацию в X!", show_alert=True)
    if query.message:
        try:
            await query.edit_message_reply_markup(reply_markup=None)
        except TelegramError as e:
            logger.debug(f"Не удалось убрать кнопку подтверждения: {e}")
# ================================== _handle_confirm_link() end ==================================


# ================================== handle_callback_query(): Dispatches parsed callback actions ==================================
async def handle_callback_query(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    if not query or not query.from_user:
        return
    parsed = parse_callback_data(query.data)
    if parsed is None:
        logger.warning(f"Неизвестный callback от {query.from_user.id}: {query.data}")
        await answer_callback_safely(query, "Неизвестное действие.")
        return
    if parsed.action is CallbackAction.SHARE_LINK:
        await _handle_share_link(query, context, parsed)
    elif parsed.action is CallbackAction.CONFIRM_LINK:
        await _handle_confirm_link(query, context, parsed)
# ================================== handle_callback_query() end ==================================

# handlers/callbacks.py end
