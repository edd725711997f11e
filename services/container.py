# services/container.py
# -*- coding: utf-8 -*-
"""
Explicit wiring of the bot's stateful components.
bot.py stores the result in application.bot_data["services"].
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from config import DAILY_GENERATION_LIMIT, GENERATION_COOLDOWN_SECONDS, SESSION_MAX_AGE_SECONDS
from api.gemini_api import generate_image_with_gemini, generate_promo_message
from services.admission import AdmissionController, MembershipChecker
from services.artifacts import ImageArtifactCache
from services.generation import GenerationService, ImageGenerator, PromoGenerator
from services.points import PointsLedger
from services.sessions import SessionRegistry
from services.sharing import SharingCoordinator

logger = logging.getLogger(__name__)

SERVICES_KEY = "services"


@dataclass
class BotServices:
    sessions: SessionRegistry
    admission: AdmissionController
    artifacts: ImageArtifactCache
    points: PointsLedger
    sharing: SharingCoordinator
    generation: GenerationService
    blob_store: Optional[Any] = None
    session_max_age: float = SESSION_MAX_AGE_SECONDS


# ================================== build_services(): Creates and connects all components ==================================
def build_services(
    membership_checker: Optional[MembershipChecker] = None,
    blob_store: Optional[Any] = None,
    image_generator: ImageGenerator = generate_image_with_gemini,
    promo_generator: PromoGenerator = generate_promo_message,
    clock: Callable[[], float] = time.monotonic,
    daily_limit: int = DAILY_GENERATION_LIMIT,
    cooldown_seconds: float = GENERATION_COOLDOWN_SECONDS,
    session_max_age: float = SESSION_MAX_AGE_SECONDS,
    card_server_url: Optional[str] = None,
    **admission_kwargs: Any,
) -> BotServices:
    sessions = SessionRegistry(clock=clock)
    admission = AdmissionController(
        sessions,
        membership_checker=membership_checker,
        daily_limit=daily_limit,
        cooldown_seconds=cooldown_seconds,
        clock=clock,
        **admission_kwargs,
    )
    artifacts = ImageArtifactCache(blob_store=blob_store)
    points = PointsLedger()
    sharing_kwargs = {"card_server_url": card_server_url} if card_server_url is not None else {}
    sharing = SharingCoordinator(artifacts, points, **sharing_kwargs)
    generation = GenerationService(admission, artifacts, sharing, image_generator, promo_generator)
    logger.info(f"Services built: limit={daily_limit}/day, cooldown={cooldown_seconds}s, blob store={'on' if blob_store else 'off'}, membership gate={'on' if membership_checker else 'off'}")
    return BotServices(
        sessions=sessions,
        admission=admission,
        artifacts=artifacts,
        points=points,
        sharing=sharing,
        generation=generation,
        blob_store=blob_store,
        session_max_age=session_max_age,
    )
# ================================== build_services() end ==================================

# services/container.py end
