# services/admission.py
# -*- coding: utf-8 -*-
"""
Per-user admission for image generation.

Gates, checked in order and short-circuiting on the first failure:
  1. channel membership (async, via an injected checker; fails closed)
  2. daily quota (calendar day in QUOTA_TIMEZONE)
  3. cooldown since the last accepted start
  4. single-flight: no other active session for the user

Checking never mutates state. Callers record the start, success or failure
explicitly; try_admit() does check + start with no await after the membership
call, so two concurrent requests from one user cannot both be admitted.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from config import DAILY_GENERATION_LIMIT, GENERATION_COOLDOWN_SECONDS, QUOTA_TIMEZONE
from services.errors import AdmissionAllowed, AdmissionDenied, DenialReason
from services.sessions import GenerationSession, SessionRegistry

logger = logging.getLogger(__name__)

MembershipChecker = Callable[[int], Awaitable[bool]]
AdmissionDecision = Union[AdmissionAllowed, AdmissionDenied]


@dataclass
class UserQuotaState:
    day: date
    count: int = 0


# ================================== _quota_today(): Current date in the quota timezone ==================================
def _quota_today() -> date:
    return datetime.now(QUOTA_TIMEZONE).date()
# ================================== _quota_today() end ==================================


# ================================== AdmissionController: Quota, cooldown and single-flight gatekeeping ==================================
class AdmissionController:

    def __init__(
        self,
        sessions: SessionRegistry,
        membership_checker: Optional[MembershipChecker] = None,
        daily_limit: int = DAILY_GENERATION_LIMIT,
        cooldown_seconds: float = GENERATION_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = _quota_today,
    ):
        self.sessions = sessions
        self.daily_limit = daily_limit
        self.cooldown_seconds = cooldown_seconds
        self._membership_checker = membership_checker
        self._clock = clock
        self._today = today
        self._quotas: Dict[int, UserQuotaState] = {}
        self._last_accepted: Dict[int, float] = {}

    # ---------- gates ----------

    def used_today(self, user_id: int, today: Optional[date] = None) -> int:
        state = self._quotas.get(user_id)
        current_day = today or self._today()
        if state is None or state.day != current_day:
            return 0
        return state.count

    def remaining_today(self, user_id: int) -> int:
        return max(0, self.daily_limit - self.used_today(user_id))

    async def _check_membership(self, user_id: int) -> Optional[AdmissionDenied]:
        if self._membership_checker is None:
            return None
        try:
            is_member = await self._membership_checker(user_id)
        except Exception as e:
            logger.warning(f"Membership check failed for user {user_id}: {e}")
            return AdmissionDenied(DenialReason.MEMBERSHIP_UNVERIFIED)
        if not is_member:
            logger.info(f"Admission denied for user {user_id}: not a channel member.")
            return AdmissionDenied(DenialReason.NOT_MEMBER)
        return None

    def check_local(self, user_id: int, now: Optional[float] = None) -> AdmissionDecision:
        """Synchronous gates 2-4. Contains no suspension point."""
        current = self._clock() if now is None else now
        used = self.used_today(user_id)
        if used >= self.daily_limit:
            logger.info(f"Admission denied for user {user_id}: daily limit {used}/{self.daily_limit}.")
            return AdmissionDenied(DenialReason.DAILY_LIMIT, remaining_daily_quota=0)
        remaining = self.daily_limit - used - 1
        last = self._last_accepted.get(user_id)
        if last is not None:
            elapsed = current - last
            if elapsed < self.cooldown_seconds:
                retry_after = math.ceil(self.cooldown_seconds - elapsed)
                logger.info(f"Admission denied for user {user_id}: cooldown, retry in {retry_after}s.")
                return AdmissionDenied(DenialReason.COOLDOWN, retry_after=retry_after, remaining_daily_quota=remaining + 1)
        if self.sessions.is_active(user_id):
            logger.info(f"Admission denied for user {user_id}: generation already in progress.")
            return AdmissionDenied(DenialReason.BUSY, remaining_daily_quota=remaining + 1)
        return AdmissionAllowed(remaining_daily_quota=remaining)

    async def check_admission(self, user_id: int, now: Optional[float] = None) -> AdmissionDecision:
        denied = await self._check_membership(user_id)
        if denied is not None:
            return denied
        return self.check_local(user_id, now)

    async def try_admit(self, user_id: int, chat_id: int, prompt: str, now: Optional[float] = None) -> Tuple[AdmissionDecision, Optional[GenerationSession]]:
        denied = await self._check_membership(user_id)
        if denied is not None:
            return denied, None
        decision = self.check_local(user_id, now)
        if isinstance(decision, AdmissionDenied):
            return decision, None
        session = self.record_session_start(user_id, chat_id, prompt, now)
        return decision, session

    # ---------- bookkeeping ----------

    def record_session_start(self, user_id: int, chat_id: int, prompt: str, now: Optional[float] = None) -> GenerationSession:
        current = self._clock() if now is None else now
        session = self.sessions.start(user_id, chat_id, prompt, now=current)
        self._last_accepted[user_id] = current
        return session

    def record_session_success(self, session: GenerationSession) -> int:
        """
        Ends the session and consumes one daily slot. Returns today's count.
        A session that was reaped before finishing still counts, unless the
        user is already at the daily limit: then it is skipped, so the count
        never goes above daily_limit.
        """
        reaped = not self.sessions.end(session)
        current_day = self._today()
        state = self._quotas.get(session.user_id)
        if state is None or state.day != current_day:
            state = UserQuotaState(day=current_day)
            self._quotas[session.user_id] = state
        if reaped:
            if state.count >= self.daily_limit:
                logger.info(f"Session {session.key} finished after being reaped; user {session.user_id} already at limit, not counted.")
                return state.count
            logger.info(f"Session {session.key} finished after being reaped; counting it anyway.")
        state.count += 1
        logger.info(f"User {session.user_id} generation {state.count}/{self.daily_limit} for {current_day}.")
        return state.count

    def record_session_failure(self, session: GenerationSession) -> None:
        self.sessions.end(session)
        logger.info(f"Session {session.key} failed; quota not consumed.")

    # ---------- maintenance ----------

    def sweep_quotas(self, today: Optional[date] = None) -> int:
        current_day = today or self._today()
        stale = [user_id for user_id, state in self._quotas.items() if state.day != current_day]
        for user_id in stale:
            del self._quotas[user_id]
        if stale:
            logger.info(f"Dropped {len(stale)} stale quota entries.")
        return len(stale)

    def sweep_cooldowns(self, now: Optional[float] = None) -> int:
        current = self._clock() if now is None else now
        expired = [user_id for user_id, ts in self._last_accepted.items() if current - ts >= self.cooldown_seconds]
        for user_id in expired:
            del self._last_accepted[user_id]
        return len(expired)

    def tracked_users(self) -> int:
        return len(self._quotas)
# ================================== AdmissionController end ==================================

# services/admission.py end
