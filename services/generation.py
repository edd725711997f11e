# services/generation.py
# -*- coding: utf-8 -*-
"""
One image request end to end: admission, parallel image + promo generation,
compression, artifact caching, share building and delivery.
Session bookkeeping is symmetric: success is recorded only after delivery,
every other exit after admission records a failure and drops the cached
image together with its hosted object.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from config import FALLBACK_PROMO
from services.admission import AdmissionController
from services.artifacts import ImageArtifactCache
from services.errors import AdmissionDenied, GenerationError, GenerationErrorKind
from services.sessions import GenerationSession
from services.sharing import SharePayload, SharingCoordinator
from utils.image_helpers import compress_for_sharing, make_image_filename
from utils.prompt_helpers import build_scene_prompt

logger = logging.getLogger(__name__)

ImageGenerator = Callable[[str], Awaitable[bytes]]
PromoGenerator = Callable[[str], Awaitable[str]]
PromptBuilder = Callable[[str], Tuple[str, str]]


@dataclass(frozen=True)
class GenerationResult:
    session: GenerationSession
    mood: str
    image_bytes: bytes
    artifact_key: str
    promo_text: str
    promo_is_fallback: bool
    share: SharePayload
    remaining_daily_quota: int


Deliver = Callable[[GenerationResult], Awaitable[None]]


# ================================== GenerationService: Composes admission, generators and sharing ==================================
class GenerationService:

    def __init__(
        self,
        admission: AdmissionController,
        artifacts: ImageArtifactCache,
        sharing: SharingCoordinator,
        image_generator: ImageGenerator,
        promo_generator: PromoGenerator,
        prompt_builder: PromptBuilder = build_scene_prompt,
        fallback_promo: Optional[Dict[str, str]] = None,
    ):
        self.admission = admission
        self.artifacts = artifacts
        self.sharing = sharing
        self.image_generator = image_generator
        self.promo_generator = promo_generator
        self.prompt_builder = prompt_builder
        self.fallback_promo = fallback_promo if fallback_promo is not None else FALLBACK_PROMO

    def _fallback_promo(self, language: str) -> str:
        return self.fallback_promo.get(language) or self.fallback_promo.get("en") or "🐸 $PEPE.MP3"

    async def _generate(self, user_id: int, prompt: str, language: str) -> Tuple[str, bytes, str, bool]:
        scene_prompt, mood = self.prompt_builder(prompt)
        image_result, promo_result = await asyncio.gather(
            self.image_generator(scene_prompt),
            self.promo_generator(language),
            return_exceptions=True,
        )
        if isinstance(image_result, BaseException):
            raise image_result
        if not image_result:
            raise GenerationError(GenerationErrorKind.GENERIC, "empty image")
        if isinstance(promo_result, BaseException) or not promo_result:
            logger.warning(f"Promo generation failed for user {user_id}, using fallback: {promo_result!r}")
            return mood, image_result, self._fallback_promo(language), True
        return mood, image_result, promo_result, False

    async def run(self, user_id: int, chat_id: int, prompt: str, language: str, deliver: Deliver) -> Union[AdmissionDenied, GenerationResult]:
        decision, session = await self.admission.try_admit(user_id, chat_id, prompt)
        if isinstance(decision, AdmissionDenied):
            return decision
        logger.info(f"Generation started: {session.key} ({language}) '{prompt[:80]}'")
        succeeded = False
        cached = False
        try:
            mood, image_bytes, promo_text, promo_is_fallback = await self._generate(user_id, prompt, language)
            compressed = compress_for_sharing(image_bytes)
            self.artifacts.put(session.key, image_bytes, compressed, make_image_filename(user_id))
            cached = True
            share = await self.sharing.build_share(promo_text, session.key)
            result = GenerationResult(
                session=session,
                mood=mood,
                image_bytes=image_bytes,
                artifact_key=session.key,
                promo_text=promo_text,
                promo_is_fallback=promo_is_fallback,
                share=share,
                remaining_daily_quota=decision.remaining_daily_quota,
            )
            await deliver(result)
            succeeded = True
        finally:
            if succeeded:
                self.admission.record_session_success(session)
            else:
                self.admission.record_session_failure(session)
                if cached:
                    await self.artifacts.discard(session.key)
        logger.info(f"Generation finished: {session.key}, mood={mood}, share={share.share_id}")
        return result
# ================================== GenerationService end ==================================

# services/generation.py end
