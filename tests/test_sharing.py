# tests/test_sharing.py
# -*- coding: utf-8 -*-
from urllib.parse import parse_qs, urlparse

import pytest

from services.artifacts import ImageArtifactCache
from services.errors import ShareConfirmationError
from services.sharing import ShareChannel, SharingCoordinator, parse_inline_share_query
from tests.fakes import FakeBlobStore

PROMO = "**PEPE.MP3** is *loud*\n\n💬 [Telegram](https://t.me/pepemp3) • 🐦 [X/Twitter](https://x.com/pepegotavoice)"


def _intent_params(url: str):
    parsed = urlparse(url)
    assert parsed.netloc == "twitter.com"
    return parse_qs(parsed.query)


def test_link_text_strips_footer_and_markdown(sharing):
    text = sharing.make_link_text(PROMO)
    assert text == "PEPE.MP3 is loud\n\n@PEPEGOTAVOICE"


def test_link_text_fits_budget_with_attribution(sharing):
    long_promo = "frog " * 200
    text = sharing.make_link_text(long_promo)
    assert len(text) <= 250
    assert text.endswith("…\n\n@PEPEGOTAVOICE")


@pytest.mark.asyncio
async def test_failed_upload_gives_text_only_link_and_native_retries(points, png_bytes):
    store = FakeBlobStore(fail_times=1)
    artifacts = ImageArtifactCache(blob_store=store)
    sharing = SharingCoordinator(artifacts, points, card_server_url=None, attribution="@PEPEGOTAVOICE")
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")

    share = await sharing.build_share(PROMO, "7:1")

    assert share.link_has_image is False
    params = _intent_params(share.link_url)
    assert "url" not in params
    assert params["text"] == [share.link_text]

    url = await artifacts.ensure_uploaded("7:1")
    assert url == "https://storage.example/temp-images/pepe_7.jpg"
    assert len(store.calls) == 2


@pytest.mark.asyncio
async def test_link_url_points_at_hosted_image_without_card_server(sharing, artifacts, png_bytes):
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")
    share = await sharing.build_share(PROMO, "7:1")
    assert share.link_has_image is True
    assert _intent_params(share.link_url)["url"] == ["https://storage.example/temp-images/pepe_7.jpg"]
    assert sharing.get_payload(share.share_id) is share
    assert share.inline_query == f"share_{share.share_id}"


@pytest.mark.asyncio
async def test_link_url_wraps_image_in_card_when_card_server_set(artifacts, points, png_bytes):
    sharing = SharingCoordinator(artifacts, points, card_server_url="https://cards.example/")
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")
    share = await sharing.build_share(PROMO, "7:1")

    card_url = _intent_params(share.link_url)["url"][0]
    parsed = urlparse(card_url)
    assert parsed.netloc == "cards.example"
    assert parsed.path == "/twitter-card"
    card_params = parse_qs(parsed.query)
    assert card_params["imageUrl"] == ["https://storage.example/temp-images/pepe_7.jpg"]
    assert card_params["description"] == [share.link_text]


@pytest.mark.asyncio
async def test_token_is_single_use(sharing, artifacts, points, png_bytes):
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")
    share = await sharing.build_share(PROMO, "7:1")

    token = sharing.issue_token(7, share.share_id, ShareChannel.LINK)
    assert sharing.issue_token(7, share.share_id, ShareChannel.LINK) == token

    assert sharing.confirm_share(7, ShareChannel.LINK, token, "Frog") == 2
    with pytest.raises(ShareConfirmationError):
        sharing.confirm_share(7, ShareChannel.LINK, token)
    assert points.total(7) == 2
    assert sharing.already_awarded(7, share.share_id, ShareChannel.LINK)
    assert sharing.issue_token(7, share.share_id, ShareChannel.LINK) is None


@pytest.mark.asyncio
async def test_channels_award_independently(sharing, artifacts, points, png_bytes):
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")
    share = await sharing.build_share(PROMO, "7:1")

    native = sharing.issue_token(7, share.share_id, ShareChannel.NATIVE)
    link = sharing.issue_token(7, share.share_id, ShareChannel.LINK)
    sharing.confirm_share(7, ShareChannel.NATIVE, native)
    sharing.confirm_share(7, ShareChannel.LINK, link)

    assert points.total(7) == 3


@pytest.mark.asyncio
async def test_foreign_or_mismatched_tokens_rejected(sharing, artifacts, points, png_bytes):
    artifacts.put("7:1", png_bytes, png_bytes, "pepe_7.jpg")
    share = await sharing.build_share(PROMO, "7:1")
    token = sharing.issue_token(7, share.share_id, ShareChannel.LINK)

    with pytest.raises(ShareConfirmationError):
        sharing.confirm_share(8, ShareChannel.LINK, token)
    with pytest.raises(ShareConfirmationError):
        sharing.confirm_share(7, ShareChannel.NATIVE, token)
    with pytest.raises(ShareConfirmationError):
        sharing.confirm_share(7, ShareChannel.LINK, "forged")

    assert points.total(7) == 0
    assert points.total(8) == 0
    assert sharing.confirm_share(7, ShareChannel.LINK, token) == 2


def test_issue_token_for_unknown_share_is_none(sharing):
    assert sharing.issue_token(7, "missing", ShareChannel.NATIVE) is None


def test_parse_inline_share_query():
    assert parse_inline_share_query("share_abc") == "abc"
    assert parse_inline_share_query("  share_abc ") == "abc"
    assert parse_inline_share_query("share_") is None
    assert parse_inline_share_query("pepe") is None
    assert parse_inline_share_query(None) is None
