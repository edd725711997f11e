# ui/keyboards.py
# -*- coding: utf-8 -*-
"""
Inline keyboards for generation replies and the X/Twitter share flow,
plus the `action|payload` callback data format they use.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional
from telegram import InlineKeyboardButton, InlineKeyboardMarkup
from config import LINK_SHARE_POINTS, NATIVE_SHARE_POINTS
from services.sharing import SharePayload

logger = logging.getLogger(__name__)

CALLBACK_SEPARATOR = "|"


class CallbackAction(str, enum.Enum):
    SHARE_LINK = "share_x"
    CONFIRM_LINK = "confirm_x"


@dataclass(frozen=True)
class ParsedCallback:
    action: CallbackAction
    payload: str


def make_callback_data(action: CallbackAction, payload: str) -> str:
    return f"{action.value}{CALLBACK_SEPARATOR}{payload}"


# ================================== parse_callback_data(): Parses `action|payload` into a ParsedCallback ==================================
def parse_callback_data(data: Optional[str]) -> Optional[ParsedCallback]:
    if not data or CALLBACK_SEPARATOR not in data:
        return None
    action_raw, payload = data.split(CALLBACK_SEPARATOR, 1)
    try:
        action = CallbackAction(action_raw)
    except ValueError:
        logger.debug(f"Неизвестное действие callback: {action_raw}")
        return None
    if not payload:
        return None
    return ParsedCallback(action=action, payload=payload)
# ================================== parse_callback_data() end ==================================


# ================================== generate_share_keyboard(): Keyboard under a generated image ==================================
def generate_share_keyboard(share: SharePayload) -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton(f"🫂 Поделиться в Telegram (+{NATIVE_SHARE_POINTS})", switch_inline_query=share.inline_query)],
        [InlineKeyboardButton(f"🐦 Поделиться в X (+{LINK_SHARE_POINTS})", callback_data=make_callback_data(CallbackAction.SHARE_LINK, share.share_id))],
    ]
    return InlineKeyboardMarkup(keyboard)
# ================================== generate_share_keyboard() end ==================================


# ================================== generate_link_share_keyboard(): Open-intent and confirm buttons ==================================
def generate_link_share_keyboard(link_url: str, token: str) -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton("🐦 Открыть X и опубликовать", url=link_url)],
        [InlineKeyboardButton(f"✅ Подтвердить публикацию (+{LINK_SHARE_POINTS})", callback_data=make_callback_data(CallbackAction.CONFIRM_LINK, token))],
    ]
    return InlineKeyboardMarkup(keyboard)
# ================================== generate_link_share_keyboard() end ==================================

# ui/keyboards.py end
