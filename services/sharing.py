# services/sharing.py
# -*- coding: utf-8 -*-
"""
Builds share payloads for finished generations and awards points on
confirmed shares.

Native share: a switch-inline button with query `share_<share_id>`; the image
is uploaded only when the inline query arrives. Link share: an X/Twitter intent
URL, built eagerly because the card preview needs a hosted image; without one
the intent is text-only.

Every award goes through a one-time token bound to (user, share, channel),
and each such triple is awarded at most once.
"""

import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple
from urllib.parse import quote, urlencode

from cachetools import TTLCache

from config import (
    CARD_DEFAULTS, CARD_SERVER_URL, LINK_SHARE_POINTS, NATIVE_SHARE_POINTS,
    SHARE_ATTRIBUTION, SHARE_PAYLOAD_MAXSIZE, SHARE_PAYLOAD_TTL_SECONDS, SHARE_TEXT_BUDGET,
)
from services.artifacts import ImageArtifactCache
from services.errors import ShareConfirmationError
from services.points import PointsLedger
from utils.html_helpers import strip_links_footer, strip_markdown, truncate_text

logger = logging.getLogger(__name__)

TWEET_INTENT_URL = "https://twitter.com/intent/tweet"
INLINE_SHARE_PREFIX = "share_"


class ShareChannel(str, enum.Enum):
    NATIVE = "native"
    LINK = "link"

    @property
    def points(self) -> int:
        return NATIVE_SHARE_POINTS if self is ShareChannel.NATIVE else LINK_SHARE_POINTS


@dataclass(frozen=True)
class SharePayload:
    share_id: str
    promo_text: str
    artifact_key: str
    link_text: str
    link_url: str
    link_has_image: bool

    @property
    def inline_query(self) -> str:
        return f"{INLINE_SHARE_PREFIX}{self.share_id}"


# ================================== parse_inline_share_query(): Extracts share_id from an inline query ==================================
def parse_inline_share_query(query: str) -> Optional[str]:
    query = (query or "").strip()
    if not query.startswith(INLINE_SHARE_PREFIX):
        return None
    share_id = query[len(INLINE_SHARE_PREFIX):]
    return share_id or None
# ================================== parse_inline_share_query() end ==================================


# ================================== SharingCoordinator: Share payloads, tokens and awards ==================================
class SharingCoordinator:

    def __init__(
        self,
        artifacts: ImageArtifactCache,
        points: PointsLedger,
        card_server_url: Optional[str] = CARD_SERVER_URL,
        text_budget: int = SHARE_TEXT_BUDGET,
        attribution: str = SHARE_ATTRIBUTION,
        ttl_seconds: float = SHARE_PAYLOAD_TTL_SECONDS,
        maxsize: int = SHARE_PAYLOAD_MAXSIZE,
    ):
        self.artifacts = artifacts
        self.points = points
        self.card_server_url = card_server_url.rstrip("/") if card_server_url else None
        self.text_budget = text_budget
        self.attribution = attribution
        self._payloads: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._tokens: TTLCache = TTLCache(maxsize=maxsize * 2, ttl=ttl_seconds)
        self._outstanding: Dict[Tuple[int, str, ShareChannel], str] = TTLCache(maxsize=maxsize * 2, ttl=ttl_seconds)
        self._awarded: Set[Tuple[int, str, ShareChannel]] = set()

    # ---------- link share ----------

    def make_link_text(self, promo_text: str) -> str:
        suffix = f"\n\n{self.attribution}" if self.attribution else ""
        body = strip_markdown(strip_links_footer(promo_text))
        body = truncate_text(body, self.text_budget - len(suffix))
        return f"{body}{suffix}"

    def make_card_url(self, image_url: str, description: str) -> str:
        params = {
            "imageUrl": image_url,
            "title": CARD_DEFAULTS.get("title", "AI-Generated Pepe Meme"),
            "description": description,
        }
        return f"{self.card_server_url}/twitter-card?{urlencode(params, quote_via=quote)}"

    def make_link_url(self, link_text: str, image_url: Optional[str]) -> str:
        params = {"text": link_text}
        if image_url:
            params["url"] = self.make_card_url(image_url, link_text) if self.card_server_url else image_url
        return f"{TWEET_INTENT_URL}?{urlencode(params, quote_via=quote)}"

    async def build_share(self, promo_text: str, artifact_key: str) -> SharePayload:
        share_id = secrets.token_urlsafe(8)
        while share_id in self._payloads:
            share_id = secrets.token_urlsafe(8)
        link_text = self.make_link_text(promo_text)
        image_url = await self.artifacts.ensure_uploaded(artifact_key)
        if not image_url:
            logger.info(f"Share {share_id}: no hosted image, link share is text-only.")
        payload = SharePayload(
            share_id=share_id,
            promo_text=promo_text,
            artifact_key=artifact_key,
            link_text=link_text,
            link_url=self.make_link_url(link_text, image_url),
            link_has_image=bool(image_url),
        )
        self._payloads[share_id] = payload
        logger.debug(f"Share payload {share_id} built for artifact {artifact_key}.")
        return payload

    def get_payload(self, share_id: str) -> Optional[SharePayload]:
        return self._payloads.get(share_id)

    def payload_count(self) -> int:
        return len(self._payloads)

    # ---------- confirmation ----------

    def issue_token(self, user_id: int, share_id: str, channel: ShareChannel) -> Optional[str]:
        if share_id not in self._payloads:
            return None
        triple = (user_id, share_id, channel)
        if triple in self._awarded:
            return None
        existing = self._outstanding.get(triple)
        if existing and existing in self._tokens:
            return existing
        token = secrets.token_urlsafe(16)
        self._tokens[token] = triple
        self._outstanding[triple] = token
        logger.debug(f"Token issued for user {user_id}, share {share_id}, {channel.value}.")
        return token

    def already_awarded(self, user_id: int, share_id: str, channel: ShareChannel) -> bool:
        return (user_id, share_id, channel) in self._awarded

    def confirm_share(self, user_id: int, channel: ShareChannel, token: str, display_name: Optional[str] = None) -> int:
        triple = self._tokens.get(token)
        if triple is None:
            raise ShareConfirmationError("unknown or expired token")
        token_user, share_id, token_channel = triple
        if token_user != user_id:
            raise ShareConfirmationError("token belongs to another user")
        if token_channel is not channel:
            raise ShareConfirmationError("token issued for another channel")
        del self._tokens[token]
        self._outstanding.pop(triple, None)
        if triple in self._awarded:
            raise ShareConfirmationError("share already confirmed")
        self._awarded.add(triple)
        total = self.points.add(user_id, channel.points, display_name)
        logger.info(f"User {user_id} confirmed {channel.value} share {share_id}: +{channel.points}, total {total}.")
        return total
# ================================== SharingCoordinator end ==================================

# services/sharing.py end
