# ui/card_page.py
# -*- coding: utf-8 -*-
"""
HTML card page with Open Graph and Twitter Card meta tags for shared images.
All substituted values are HTML-escaped.
"""

import logging
from html import escape
from string import Template
from typing import Optional
from urllib.parse import quote

from config import CARD_DEFAULTS, PROMO_LINKS

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "AI-Generated Pepe Meme"
DEFAULT_DESCRIPTION = "Check out this AI-generated Pepe meme! Create your own with @PEPEGOTAVOICE"
SHORT_DESCRIPTION_MARKER = "Check out this AI-generated Pepe meme! @PEPEGOTAVOICE #PepeMP3"

CARD_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <meta name="twitter:card" content="summary_large_image">
    <meta name="twitter:site" content="$site">
    <meta name="twitter:creator" content="$site">
    <meta name="twitter:title" content="$title">
    <meta name="twitter:description" content="$description">
    <meta name="twitter:image" content="$image_url">
    <meta name="twitter:image:alt" content="$image_alt">
    <meta property="og:type" content="website">
    <meta property="og:title" content="$title">
    <meta property="og:description" content="$description">
    <meta property="og:image" content="$image_url">
    <meta property="og:image:secure_url" content="$image_url">
    <meta property="og:image:type" content="image/jpeg">
    <meta property="og:image:width" content="1024">
    <meta property="og:image:height" content="1024">
    <meta property="og:image:alt" content="$image_alt">
    <meta property="og:url" content="$page_url">
    <meta property="og:site_name" content="PEPE.MP3 - AI Meme Generator">
    <meta name="robots" content="index, follow">
    <style>
        body { font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px;
               background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; text-align: center; min-height: 100vh;
               display: flex; align-items: center; justify-content: center; }
        .card { background: rgba(255, 255, 255, 0.1); border-radius: 20px; padding: 40px; border: 1px solid rgba(255, 255, 255, 0.2); }
        .pepe-image { max-width: 100%; max-height: 400px; border-radius: 15px; margin: 20px auto; display: block; }
        .description { font-size: 1.3em; line-height: 1.7; margin-bottom: 35px; }
        .cta-button { display: inline-block; background: #1DA1F2; color: white; padding: 18px 35px; text-decoration: none; border-radius: 30px; font-weight: bold; margin: 5px; }
        .footer { margin-top: 40px; opacity: 0.8; font-size: 0.9em; }
    </style>
</head>
<body>
    <div class="card">
        <h1>🐸 $$PEPE.MP3</h1>
        <img src="$image_url" alt="$title" class="pepe-image" onerror="this.style.display='none'" />
        <p class="description">$description</p>
        $tweet_button
        <a href="$bot_url" class="cta-button">🎨 Create Your Own Pepe</a>
        <div class="footer"><p>AI-Generated Pepe Memes • $site</p></div>
    </div>
</body>
</html>
""")


def _bot_url() -> str:
    for link in PROMO_LINKS:
        if "t.me" in link.get("url", ""):
            return link["url"]
    return "https://t.me/pepemp3"


# ================================== render_card_page(): Fills the card template ==================================
def render_card_page(
    image_url: Optional[str],
    title: Optional[str] = None,
    description: Optional[str] = None,
    page_url: str = "",
    tweet_text: Optional[str] = None,
) -> str:
    card_title = title or CARD_DEFAULTS.get("title", DEFAULT_TITLE)
    card_description = description or DEFAULT_DESCRIPTION
    if SHORT_DESCRIPTION_MARKER in card_description:
        card_description = CARD_DEFAULTS.get("description", card_description)
    final_image_url = image_url or CARD_DEFAULTS.get("placeholder_image", "")
    if not image_url:
        logger.info("No image URL provided, using placeholder.")
    tweet_button = ""
    if tweet_text:
        intent = f"https://twitter.com/intent/tweet?text={quote(tweet_text)}"
        tweet_button = f'<a href="{escape(intent)}" class="cta-button">🐦 Share on X</a>'
    return CARD_TEMPLATE.substitute(
        title=escape(card_title),
        description=escape(card_description),
        image_url=escape(final_image_url),
        image_alt=escape(CARD_DEFAULTS.get("image_alt", DEFAULT_TITLE)),
        site=escape(CARD_DEFAULTS.get("site", "@PEPEGOTAVOICE")),
        page_url=escape(page_url),
        bot_url=escape(_bot_url()),
        tweet_button=tweet_button,
    )
# ================================== render_card_page() end ==================================

# ui/card_page.py end
