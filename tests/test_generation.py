# tests/test_generation.py
# -*- coding: utf-8 -*-
import pytest

from services.container import build_services
from services.errors import AdmissionDenied, DenialReason, GenerationError, GenerationErrorKind
from services.generation import GenerationResult
from tests.fakes import FakeBlobStore, ManualClock, ManualDay, make_png

FALLBACK = {"ru": "🐸 Пепе молчит", "en": "🐸 Pepe is silent"}


def _services(image_generator=None, promo_generator=None, blob_store=None, clock=None):
    async def image(prompt):
        return make_png(320, 240)

    async def promo(language):
        return f"promo in {language}"

    services = build_services(
        blob_store=blob_store if blob_store is not None else FakeBlobStore(),
        image_generator=image_generator or image,
        promo_generator=promo_generator or promo,
        clock=clock or ManualClock(),
        daily_limit=3,
        cooldown_seconds=30,
        card_server_url="",
        today=ManualDay(),
    )
    services.generation.fallback_promo = FALLBACK
    return services


@pytest.mark.asyncio
async def test_successful_run_delivers_and_consumes_quota():
    services = _services()
    delivered = []

    async def deliver(result):
        assert services.sessions.is_active(7)
        delivered.append(result)

    result = await services.generation.run(7, 100, "happy pepe", "en", deliver)

    assert isinstance(result, GenerationResult)
    assert delivered == [result]
    assert result.mood == "cheerful"
    assert result.promo_text == "promo in en"
    assert result.promo_is_fallback is False
    assert result.remaining_daily_quota == 2
    assert services.admission.used_today(7) == 1
    assert not services.sessions.is_active(7)
    assert services.artifacts.get(result.artifact_key) is not None
    assert services.sharing.get_payload(result.share.share_id) is result.share
    assert result.share.link_has_image is True


@pytest.mark.asyncio
async def test_image_failure_releases_session_without_quota():
    async def failing_image(prompt):
        raise GenerationError(GenerationErrorKind.SAFETY, "blocked")

    services = _services(image_generator=failing_image)

    async def deliver(result):
        raise AssertionError("must not deliver")

    with pytest.raises(GenerationError) as exc_info:
        await services.generation.run(7, 100, "pepe", "en", deliver)

    assert exc_info.value.kind is GenerationErrorKind.SAFETY
    assert services.admission.used_today(7) == 0
    assert not services.sessions.is_active(7)
    assert services.artifacts.size() == 0


@pytest.mark.asyncio
async def test_promo_failure_falls_back():
    async def failing_promo(language):
        raise GenerationError(GenerationErrorKind.QUOTA, "rate limit")

    services = _services(promo_generator=failing_promo)
    delivered = []

    async def deliver(result):
        delivered.append(result)

    result = await services.generation.run(7, 100, "пепе на луне", "ru", deliver)

    assert result.promo_text == FALLBACK["ru"]
    assert result.promo_is_fallback is True
    assert services.admission.used_today(7) == 1


@pytest.mark.asyncio
async def test_delivery_failure_does_not_consume_quota():
    store = FakeBlobStore()
    services = _services(blob_store=store)

    async def deliver(result):
        raise RuntimeError("telegram down")

    with pytest.raises(RuntimeError):
        await services.generation.run(7, 100, "pepe", "en", deliver)

    assert services.admission.used_today(7) == 0
    assert not services.sessions.is_active(7)
    assert services.artifacts.size() == 0
    assert store.deleted == store.calls
    assert len(store.deleted) == 1


@pytest.mark.asyncio
async def test_denied_request_never_reaches_generators():
    calls = []

    async def image(prompt):
        calls.append(prompt)
        return make_png()

    clock = ManualClock()
    services = _services(image_generator=image, clock=clock)

    async def deliver(result):
        pass

    await services.generation.run(7, 100, "pepe one", "en", deliver)
    clock.advance(10)
    denied = await services.generation.run(7, 100, "pepe two", "en", deliver)

    assert isinstance(denied, AdmissionDenied)
    assert denied.reason is DenialReason.COOLDOWN
    assert denied.retry_after == 20
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_upload_failure_still_delivers_text_only_share():
    services = _services(blob_store=FakeBlobStore(fail_times=1))
    delivered = []

    async def deliver(result):
        delivered.append(result)

    result = await services.generation.run(7, 100, "pepe", "en", deliver)

    assert delivered == [result]
    assert result.share.link_has_image is False
    assert services.admission.used_today(7) == 1
