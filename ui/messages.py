# ui/messages.py
# -*- coding: utf-8 -*-
"""
User-facing texts (Russian, Telegram HTML) and the generation reply sender.
"""

import io
import logging
from html import escape
from typing import List, Optional

from telegram import Bot, InputFile, Message
from telegram.constants import ParseMode

from config import (
    DAILY_GENERATION_LIMIT, LINK_SHARE_POINTS, MAX_CAPTION_LENGTH, NATIVE_SHARE_POINTS,
    PREDEFINED_MOODS, QUOTA_TIMEZONE_NAME, REQUIRED_CHANNEL_ID,
)
from services.errors import AdmissionDenied, DenialReason, GenerationError, GenerationErrorKind
from services.generation import GenerationResult
from services.points import LeaderboardEntry
from utils.html_helpers import convert_basic_markdown_to_html, strip_markdown, truncate_text
from .keyboards import generate_share_keyboard

logger = logging.getLogger(__name__)

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

WELCOME_TEXT = (
    "🐸 Привет! Я ShillBot - генератор изображений Pepe с промо-сообщениями для $PEPE.MP3!\n\n"
    "🎨 <b>Как пользоваться:</b>\n"
    "• Просто напишите мне, что должен делать Pepe\n"
    "• Пример: \"Pepe играет в игры\" или \"Pepe coding\"\n"
    "• В группах упоминайте меня: <code>@бот Pepe на луне</code>\n"
    "• Я создам изображение + промо-сообщение + кнопки для шэринга\n\n"
    "🎯 <b>Система баллов:</b>\n"
    f"• 🫂 Поделиться в Telegram: +{NATIVE_SHARE_POINTS} балл\n"
    f"• 🐦 Поделиться в X/Twitter: +{LINK_SHARE_POINTS} балла\n"
    "• /leaderboard - таблица лидеров, /points - ваши баллы\n\n"
    "🌟 <b>Дополнительные команды:</b>\n"
    "• /moods - список всех настроений\n"
    "• /promo - получить промо-сообщение\n\n"
    "Попробуйте написать что-то вроде \"грустный Pepe\" или \"happy Pepe cooking\"!"
)

HELP_TEXT = (
    "ℹ️ <b>Справка</b>\n\n"
    "Напишите описание сцены (от 3 до 500 символов), и я нарисую Pepe.\n"
    f"Лимит: {DAILY_GENERATION_LIMIT} генераций в день, не чаще одной за раз.\n\n"
    "/start - приветствие\n"
    "/moods - настроения\n"
    "/promo - промо-сообщение (язык по тексту команды)\n"
    "/leaderboard - топ-10 по баллам\n"
    "/points - ваши баллы"
)

DEFAULT_INLINE_TEXT = "🤖 Используйте бота для генерации изображений Pepe с промо-сообщениями!"


# ================================== format_moods_message(): Lists moods by language ==================================
def format_moods_message(moods: Optional[List[str]] = None) -> str:
    moods = moods if moods is not None else PREDEFINED_MOODS
    english = [m for m in moods if m.isascii()]
    russian = [m for m in moods if not m.isascii()]
    return (
        "🎭 <b>Доступные настроения:</b>\n\n"
        f"🇺🇸 <b>English:</b> {escape(', '.join(english))}\n"
        f"🇷🇺 <b>Русский:</b> {escape(', '.join(russian))}\n\n"
        "💡 <b>Как использовать:</b>\n"
        "• Включите любое настроение в ваш запрос\n"
        "• Пример: \"cool Pepe at work\" или \"грустный Pepe дома\"\n"
        "• Если не указать настроение, я выберу случайное!"
    )
# ================================== format_moods_message() end ==================================


# ================================== format_leaderboard(): Top users with medals ==================================
def format_leaderboard(entries: List[LeaderboardEntry]) -> str:
    if not entries:
        return "🏆 Таблица лидеров пуста! Начните делиться контентом, чтобы заработать баллы!"
    lines = [f"🏆 <b>Топ-{len(entries)} лидеров по баллам:</b>\n"]
    for position, entry in enumerate(entries, start=1):
        medal = MEDALS.get(position, "📍")
        lines.append(f"{medal} {position}. {escape(entry.name)}: <b>{entry.total}</b>")
    lines.append("\n💡 Делитесь контентом, чтобы заработать больше баллов!")
    return "\n".join(lines)
# ================================== format_leaderboard() end ==================================


def format_points(total: int, remaining_today: int) -> str:
    return f"🎯 У вас <b>{total}</b> баллов.\n🎨 Осталось генераций сегодня: <b>{remaining_today}</b>."


# ================================== format_status(): Operator view of in-process state ==================================
def format_status(services) -> str:
    active = services.sessions.list_active()
    lines = [
        "📊 <b>Статус</b>",
        f"Активные генерации: <b>{len(active)}</b>",
        f"Изображений в кэше: <b>{services.artifacts.size()}</b>",
        f"Пользователей с квотой: <b>{services.admission.tracked_users()}</b>",
        f"Пользователей с баллами: <b>{len(services.points)}</b>",
        f"Share-payload в памяти: <b>{services.sharing.payload_count()}</b>",
        f"Хранилище: <b>{'включено' if services.blob_store else 'выключено'}</b>",
    ]
    if active:
        lines.append("")
        lines.extend(f"• <code>{escape(s.key)}</code> чат {s.chat_id}: {escape(s.prompt[:40])}" for s in active[:20])
    return "\n".join(lines)
# ================================== format_status() end ==================================


# ================================== format_denial(): Explains why a request was not admitted ==================================
def format_denial(denial: AdmissionDenied, daily_limit: int = DAILY_GENERATION_LIMIT, channel: Optional[str] = REQUIRED_CHANNEL_ID) -> str:
    channel_name = escape(channel or "канал проекта")
    if denial.reason is DenialReason.NOT_MEMBER:
        return f"🔒 Чтобы генерировать изображения, подпишитесь на {channel_name} и попробуйте снова."
    if denial.reason is DenialReason.MEMBERSHIP_UNVERIFIED:
        return f"⚠️ Не удалось проверить подписку на {channel_name}. Попробуйте через минуту."
    if denial.reason is DenialReason.DAILY_LIMIT:
        return f"📅 Дневной лимит исчерпан: {daily_limit} из {daily_limit} генераций. Лимит обновится в 00:00 ({escape(QUOTA_TIMEZONE_NAME)})."
    if denial.reason is DenialReason.COOLDOWN:
        return f"⏳ Подождите {denial.retry_after} сек. перед следующей генерацией."
    return "🎨 Предыдущее изображение ещё генерируется. Дождитесь результата."
# ================================== format_denial() end ==================================


# ================================== format_generation_error(): Per-kind failure message ==================================
def format_generation_error(error: BaseException) -> str:
    kind = error.kind if isinstance(error, GenerationError) else GenerationErrorKind.GENERIC
    if kind is GenerationErrorKind.SAFETY:
        return (
            "🚫 Не могу сгенерировать это изображение из-за правил безопасности Gemini. Запрос может быть:\n"
            "• неуместным или вредным\n"
            "• против правил контента\n\n"
            "Попробуйте другое, дружелюбное описание! 😊"
        )
    if kind is GenerationErrorKind.QUOTA:
        return "⏰ Слишком много запросов к генератору. Подождите немного и попробуйте снова."
    if kind is GenerationErrorKind.AUTH:
        return "🔑 Ошибка конфигурации API. Администратор уже уведомлён."
    return "❌ Произошла ошибка при генерации. Попробуйте ещё раз."
# ================================== format_generation_error() end ==================================


# ================================== format_share_caption(): Promo text as HTML within a caption limit ==================================
def format_share_caption(promo_text: str, footer: str = "") -> str:
    caption = convert_basic_markdown_to_html(promo_text) + footer
    if len(caption) <= MAX_CAPTION_LENGTH:
        return caption
    logger.debug(f"Caption {len(caption)} > {MAX_CAPTION_LENGTH}, plain fallback.")
    return escape(truncate_text(strip_markdown(promo_text), MAX_CAPTION_LENGTH - len(footer) - 16)) + footer
# ================================== format_share_caption() end ==================================


def build_caption(result: GenerationResult) -> str:
    footer = f"\n\n🎭 {escape(result.mood)} • осталось сегодня: {result.remaining_daily_quota}"
    return format_share_caption(result.promo_text, footer)


def format_link_share_prompt(has_image: bool) -> str:
    preview = "с карточкой изображения" if has_image else "только текст (изображение недоступно)"
    return (
        "🐦 <b>Поделиться в X/Twitter</b>\n\n"
        f"1. Откройте X и опубликуйте пост ({preview})\n"
        f"2. После публикации нажмите «Подтвердить» (+{LINK_SHARE_POINTS} балла)"
    )


# ================================== send_generation_reply(): Sends the image with caption and share buttons ==================================
async def send_generation_reply(bot: Bot, chat_id: int, result: GenerationResult, reply_to_message_id: Optional[int] = None) -> Message:
    sent_message = await bot.send_photo(
        chat_id=chat_id,
        photo=InputFile(io.BytesIO(result.image_bytes), "pepe.png"),
        caption=build_caption(result),
        parse_mode=ParseMode.HTML,
        reply_to_message_id=reply_to_message_id,
        reply_markup=generate_share_keyboard(result.share),
    )
    logger.info(f"Отправлено изображение {sent_message.message_id} в чат {chat_id} (share {result.share.share_id}).")
    return sent_message
# ================================== send_generation_reply() end ==================================

# ui/messages.py end
