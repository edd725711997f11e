# handlers/inline.py
# -*- coding: utf-8 -*-
"""
Native Telegram sharing through inline mode.
The inline query `share_<share_id>` is answered with the generated photo
(uploaded on demand) whose result id is a one-time NATIVE token; the
chosen_inline_result update for that id awards the points.
Requires inline feedback to be enabled for the bot in BotFather.
"""

import logging
from telegram import (
    Update, InlineQueryResultArticle, InlineQueryResultPhoto, InputTextMessageContent,
)
from telegram.ext import ContextTypes
from telegram.constants import ParseMode
from telegram.error import TelegramError
from services.errors import ShareConfirmationError
from services.sharing import ShareChannel, parse_inline_share_query
from ui.messages import DEFAULT_INLINE_TEXT, format_share_caption
from utils.telegram_helpers import get_display_name
from handlers.generation import get_services

logger = logging.getLogger(__name__)

DEFAULT_RESULT_ID = "default"
NOT_FOUND_RESULT_ID = "not_found"


def _default_result() -> InlineQueryResultArticle:
    return InlineQueryResultArticle(
        id=DEFAULT_RESULT_ID,
        title="🤖 ShillBot",
        description="Отправьте запрос боту для генерации изображения Pepe",
        input_message_content=InputTextMessageContent(DEFAULT_INLINE_TEXT),
    )


def _not_found_result() -> InlineQueryResultArticle:
    return InlineQueryResultArticle(
        id=NOT_FOUND_RESULT_ID,
        title="❌ Сообщение не найдено",
        description="Попробуйте сгенерировать новое изображение",
        input_message_content=InputTextMessageContent("Сообщение не найдено. Попробуйте сгенерировать новое изображение."),
    )


# ================================== handle_inline_query(): Answers share and default inline queries ==================================
async def handle_inline_query(update: Update, context: ContextTypes.DEFAULT_TYPE):
    inline_query = update.inline_query
    if not inline_query:
        return
    share_id = parse_inline_share_query(inline_query.query)
    if share_id is None:
        await inline_query.answer([_default_result()], cache_time=300)
        return
    services = get_services(context)
    payload = services.sharing.get_payload(share_id)
    if payload is None:
        await inline_query.answer([_not_found_result()], cache_time=0, is_personal=True)
        return
    user_id = inline_query.from_user.id
    token = services.sharing.issue_token(user_id, share_id, ShareChannel.NATIVE)
    result_id = token or f"done_{share_id}"
    image_url = await services.artifacts.ensure_uploaded(payload.artifact_key)
    caption = format_share_caption(payload.promo_text)
    if image_url:
        result = InlineQueryResultPhoto(
            id=result_id,
            photo_url=image_url,
            thumbnail_url=image_url,
            title="🎉 Поделиться Pepe $PEPE.MP3",
            description="Нажмите, чтобы отправить изображение с промо-сообщением",
            caption=caption,
            parse_mode=ParseMode.HTML,
        )
    else:
        logger.info(f"Inline share {share_id}: no hosted image, text-only result.")
        result = InlineQueryResultArticle(
            id=result_id,
            title="🎉 Поделиться промо-сообщением $PEPE.MP3",
            description="Нажмите, чтобы отправить промо-сообщение в этот чат",
            input_message_content=InputTextMessageContent(caption, parse_mode=ParseMode.HTML),
        )
    await inline_query.answer([result], cache_time=0, is_personal=True)
# ================================== handle_inline_query() end ==================================


# ================================== handle_chosen_inline_result(): Awards points for a sent native share ==================================
async def handle_chosen_inline_result(update: Update, context: ContextTypes.DEFAULT_TYPE):
    chosen = update.chosen_inline_result
    if not chosen or chosen.result_id in (DEFAULT_RESULT_ID, NOT_FOUND_RESULT_ID):
        return
    user = chosen.from_user
    try:
        total = get_services(context).sharing.confirm_share(user.id, ShareChannel.NATIVE, chosen.result_id, get_display_name(user))
    except ShareConfirmationError as e:
        logger.debug(f"Native share from {user.id} not awarded: {e}")
        return
    try:
        await context.bot.send_message(chat_id=user.id, text=f"🫂 +{ShareChannel.NATIVE.points} балл за репост! У вас {total} баллов.")
    except TelegramError as e:
        logger.debug(f"Не удалось уведомить {user.id} о баллах: {e}")
# ================================== handle_chosen_inline_result() end ==================================

# handlers/inline.py end
