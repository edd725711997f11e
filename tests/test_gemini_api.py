# tests/test_gemini_api.py
# -*- coding: utf-8 -*-
import base64
import itertools

import pytest
import requests

from api import gemini_api
from services.errors import GenerationError, GenerationErrorKind, classify_generation_error


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)


@pytest.fixture
def fake_post(monkeypatch):
    calls = []
    responses = []

    def post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json})
        return responses.pop(0)

    monkeypatch.setattr(gemini_api, "api_key_cycler", itertools.cycle(["key-1", "key-2"]))
    monkeypatch.setattr(gemini_api.requests, "post", post)
    return calls, responses


@pytest.mark.parametrize("status_code,reason,message,expected", [
    (429, None, "", GenerationErrorKind.QUOTA),
    (401, None, "", GenerationErrorKind.AUTH),
    (403, None, "", GenerationErrorKind.AUTH),
    (None, "SAFETY", "", GenerationErrorKind.SAFETY),
    (None, None, "Content violates policy", GenerationErrorKind.SAFETY),
    (None, None, "Quota exceeded for project", GenerationErrorKind.QUOTA),
    (None, None, "API key not valid", GenerationErrorKind.AUTH),
    (500, None, "backend exploded", GenerationErrorKind.GENERIC),
])
def test_classify_generation_error(status_code, reason, message, expected):
    assert classify_generation_error(status_code=status_code, reason=reason, message=message) is expected


@pytest.mark.asyncio
async def test_image_bytes_are_decoded_and_keys_rotate(fake_post):
    calls, responses = fake_post
    image = b"\x89PNG fake"
    payload = {"candidates": [{"content": {"parts": [
        {"text": "here you go"},
        {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(image).decode()}},
    ]}}]}
    responses.extend([FakeResponse(payload=payload), FakeResponse(payload=payload)])

    assert await gemini_api.generate_image_with_gemini("pepe") == image
    assert await gemini_api.generate_image_with_gemini("pepe") == image
    assert [call["headers"]["x-goog-api-key"] for call in calls] == ["key-1", "key-2"]
    assert calls[0]["url"].endswith(":generateContent")


@pytest.mark.asyncio
async def test_http_429_raises_quota(fake_post):
    _, responses = fake_post
    responses.append(FakeResponse(status_code=429, payload={"error": {"message": "Resource exhausted"}}))
    with pytest.raises(GenerationError) as exc_info:
        await gemini_api.generate_image_with_gemini("pepe")
    assert exc_info.value.kind is GenerationErrorKind.QUOTA


@pytest.mark.asyncio
async def test_blocked_prompt_raises_safety(fake_post):
    _, responses = fake_post
    responses.append(FakeResponse(payload={"promptFeedback": {"blockReason": "SAFETY"}, "candidates": []}))
    with pytest.raises(GenerationError) as exc_info:
        await gemini_api.generate_image_with_gemini("pepe")
    assert exc_info.value.kind is GenerationErrorKind.SAFETY


@pytest.mark.asyncio
async def test_text_only_answer_is_an_error(fake_post):
    _, responses = fake_post
    responses.append(FakeResponse(payload={"candidates": [{"content": {"parts": [{"text": "I can't draw that"}]}, "finishReason": "STOP"}]}))
    with pytest.raises(GenerationError) as exc_info:
        await gemini_api.generate_image_with_gemini("pepe")
    assert exc_info.value.kind is GenerationErrorKind.GENERIC


@pytest.mark.asyncio
async def test_missing_keys_is_auth_error(monkeypatch):
    monkeypatch.setattr(gemini_api, "api_key_cycler", None)
    with pytest.raises(GenerationError) as exc_info:
        await gemini_api.generate_image_with_gemini("pepe")
    assert exc_info.value.kind is GenerationErrorKind.AUTH


@pytest.mark.asyncio
async def test_promo_message_gets_links_footer(fake_post):
    calls, responses = fake_post
    responses.append(FakeResponse(payload={"candidates": [{"content": {"parts": [{"text": '"Pepe found his voice"'}]}}]}))
    promo = await gemini_api.generate_promo_message("en")
    assert promo.startswith("Pepe found his voice\n\n")
    assert "(https://t.me/pepemp3)" in promo
    assert "system_instruction" not in calls[0]["json"]
