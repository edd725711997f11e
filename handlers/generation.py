# handlers/generation.py
# -*- coding: utf-8 -*-
"""
Text message handler that turns a prompt into an image reply.
Private chats: any text. Groups: only `@bot <prompt>` messages.
"""

import logging
from html import escape
from typing import Optional
from telegram import Message, Update
from telegram.ext import ContextTypes
from telegram.constants import ChatType, ParseMode
from telegram.error import TelegramError
from services.container import SERVICES_KEY, BotServices
from services.errors import AdmissionDenied, GenerationError, GenerationErrorKind
from services.generation import GenerationResult
from ui.messages import format_denial, format_generation_error, send_generation_reply
from utils.prompt_helpers import detect_language, extract_bot_mention, validate_prompt
from utils.telegram_helpers import delete_message_safely
from handlers.errors import notify_admin

logger = logging.getLogger(__name__)

GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP)


def get_services(context: ContextTypes.DEFAULT_TYPE) -> BotServices:
    return context.bot_data[SERVICES_KEY]


# ================================== extract_prompt(): Prompt text for this chat type, or None to ignore ==================================
def extract_prompt(text: str, chat_type: str, bot_username: Optional[str]) -> Optional[str]:
    mentioned = extract_bot_mention(text, bot_username)
    if chat_type in GROUP_CHAT_TYPES:
        return mentioned
    return mentioned or text
# ================================== extract_prompt() end ==================================


async def _replace_status(context: ContextTypes.DEFAULT_TYPE, message: Message, status_msg: Optional[Message], text: str):
    if status_msg:
        try:
            await context.bot.edit_message_text(chat_id=status_msg.chat_id, message_id=status_msg.message_id, text=text, parse_mode=ParseMode.HTML)
            return
        except TelegramError as e:
            logger.debug(f"Не удалось отредактировать статус {status_msg.message_id}: {e}")
    await message.reply_text(text, parse_mode=ParseMode.HTML)


# ================================== handle_text_message(): Entry point for prompt messages ==================================
async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    message = update.message
    if not message or not message.text or not update.effective_user or not update.effective_chat:
        return
    prompt = extract_prompt(message.text, update.effective_chat.type, context.bot.username)
    if prompt is None:
        return
    validation_error = validate_prompt(prompt)
    if validation_error:
        await message.reply_text(f"❌ {escape(validation_error)}", parse_mode=ParseMode.HTML)
        return
    await run_generation_for_message(update, context, prompt.strip())
# ================================== handle_text_message() end ==================================


# ================================== run_generation_for_message(): Runs one generation and reports the outcome ==================================
async def run_generation_for_message(update: Update, context: ContextTypes.DEFAULT_TYPE, prompt: str):
    services = get_services(context)
    message = update.message
    user = update.effective_user
    chat_id = update.effective_chat.id
    language = detect_language(prompt)
    logger.info(f"Запрос генерации от {user.id} в чате {chat_id}: '{prompt[:80]}'")

    status_msg: Optional[Message] = None
    try:
        status_msg = await message.reply_text("🎨 Генерирую изображение и промо-сообщение...")
    except TelegramError as e:
        logger.warning(f"Не удалось отправить статус в {chat_id}: {e}")

    async def deliver(result: GenerationResult):
        await send_generation_reply(context.bot, chat_id, result, reply_to_message_id=message.message_id)

    try:
        outcome = await services.generation.run(user.id, chat_id, prompt, language, deliver)
    except GenerationError as e:
        logger.warning(f"Генерация для {user.id} не удалась ({e.kind.value}): {e.detail[:200]}")
        await _replace_status(context, message, status_msg, format_generation_error(e))
        if e.kind is GenerationErrorKind.AUTH:
            await notify_admin(context.bot, f"🔑 Ошибка авторизации Gemini API:\n<pre>{escape(e.detail[:1000])}</pre>")
        return
    except Exception:
        await _replace_status(context, message, status_msg, format_generation_error(GenerationError(GenerationErrorKind.GENERIC)))
        raise

    if isinstance(outcome, AdmissionDenied):
        await _replace_status(context, message, status_msg, format_denial(outcome))
        return
    if status_msg:
        await delete_message_safely(context, status_msg.chat_id, status_msg.message_id)
# ================================== run_generation_for_message() end ==================================

# handlers/generation.py end
