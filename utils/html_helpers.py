# utils/html_helpers.py
# -*- coding: utf-8 -*-
"""
Markdown helpers for promo texts: Markdown to Telegram-HTML conversion,
plain-text stripping for external share links, and the links footer.
"""

import logging
import re
from html import escape
from typing import Dict, List

logger = logging.getLogger(__name__)

_LINK_MD = r'\[([^\]]+)\]\((https?://[^)\s"]+)\)'
_FOOTER_ITEM = r'(?:\S+\s+)?' + _LINK_MD
LINKS_FOOTER_RE = re.compile(r'\s*' + _FOOTER_ITEM + r'(?:\s*•\s*' + _FOOTER_ITEM + r')*\s*$')


# ================================== convert_basic_markdown_to_html(): Converts basic MD to HTML ==================================
def convert_basic_markdown_to_html(text: str) -> str:
    if not text: return ""
    try:
        escaped_text = escape(text, quote=False)
        escaped_text = re.sub(_LINK_MD, r'<a href="\2">\1</a>', escaped_text)
        escaped_text = re.sub(r'```(.*?)\s*```', r'<pre>\1</pre>', escaped_text, flags=re.DOTALL | re.IGNORECASE)
        escaped_text = re.sub(r'\*\*(.*?)\*\*', r'<b>\1</b>', escaped_text)
        escaped_text = re.sub(r'(?<![\w*])\*(?!\s)(.*?)(?<!\s)\*(?![\w*])', r'<i>\1</i>', escaped_text)
        escaped_text = re.sub(r'`(.*?)`', r'<code>\1</code>', escaped_text)
        escaped_text = re.sub(r'\n\s*\n+', '\n\n', escaped_text)
        return escaped_text.strip()
    except Exception as e:
        logger.error(f"Ошибка при конвертации Markdown->HTML: {e}. Исходный текст escape.", exc_info=True)
        return escape(text)
# ================================== convert_basic_markdown_to_html() end ==================================


# ================================== strip_markdown(): Removes Markdown markup, keeps link labels ==================================
def strip_markdown(text: str) -> str:
    if not text: return ""
    plain = re.sub(_LINK_MD, r'\1', text)
    plain = re.sub(r'```(.*?)```', r'\1', plain, flags=re.DOTALL)
    plain = re.sub(r'\*\*(.*?)\*\*', r'\1', plain)
    plain = re.sub(r'__(.*?)__', r'\1', plain)
    plain = re.sub(r'(?<![\w*])\*(?!\s)(.*?)(?<!\s)\*(?![\w*])', r'\1', plain)
    plain = re.sub(r'`(.*?)`', r'\1', plain)
    plain = re.sub(r'\n\s*\n+', '\n\n', plain)
    return plain.strip()
# ================================== strip_markdown() end ==================================


def format_links_footer(links: List[Dict[str, str]]) -> str:
    items = [f"{link.get('emoji', '')} [{link['label']}]({link['url']})".strip() for link in links if link.get('label') and link.get('url')]
    return " • ".join(items)


def strip_links_footer(text: str) -> str:
    """Drops a trailing `💬 [Telegram](...) • 🐦 [X](...)` block, if present."""
    if not text: return ""
    return LINKS_FOOTER_RE.sub('', text).rstrip()


# ================================== truncate_text(): Cuts text to a limit with an ellipsis ==================================
def truncate_text(text: str, limit: int) -> str:
    if limit <= 0: return ""
    if len(text) <= limit: return text
    cut = text[:limit - 1].rstrip()
    space = cut.rfind(' ')
    if space > limit // 2:
        cut = cut[:space].rstrip()
    return cut + "…"
# ================================== truncate_text() end ==================================

# utils/html_helpers.py end
