# services/sessions.py
# -*- coding: utf-8 -*-
"""
Registry of in-flight generation sessions.
A user holds at most one active session; admission checks this via is_active().
Sessions that never finish are reaped by reap_stale(), driven by the maintenance job.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from config import SESSION_MAX_AGE_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationSession:
    user_id: int
    chat_id: int
    prompt: str
    started_at: float
    key: str

    def age(self, now: float) -> float:
        return max(0.0, now - self.started_at)


# ================================== SessionRegistry: In-flight sessions keyed by correlation key ==================================
class SessionRegistry:

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._sessions: Dict[str, GenerationSession] = {}
        self._by_user: Dict[int, str] = {}

    def _make_key(self, user_id: int, started_at: float) -> str:
        return f"{user_id}:{int(started_at * 1000)}:{secrets.token_hex(3)}"

    def start(self, user_id: int, chat_id: int, prompt: str, now: Optional[float] = None) -> GenerationSession:
        started_at = self._clock() if now is None else now
        session = GenerationSession(user_id=user_id, chat_id=chat_id, prompt=prompt, started_at=started_at, key=self._make_key(user_id, started_at))
        previous_key = self._by_user.get(user_id)
        if previous_key is not None:
            logger.warning(f"Session {previous_key} for user {user_id} replaced by {session.key}.")
            self._sessions.pop(previous_key, None)
        self._sessions[session.key] = session
        self._by_user[user_id] = session.key
        logger.debug(f"Session started: {session.key} (chat {chat_id})")
        return session

    def end(self, session: GenerationSession) -> bool:
        """Removes the session only if the registry still holds this exact one."""
        stored = self._sessions.get(session.key)
        if stored is not session:
            logger.debug(f"Session {session.key} already gone, end() ignored.")
            return False
        del self._sessions[session.key]
        if self._by_user.get(session.user_id) == session.key:
            del self._by_user[session.user_id]
        logger.debug(f"Session ended: {session.key}")
        return True

    def is_active(self, user_id: int) -> bool:
        return user_id in self._by_user

    def list_active(self) -> List[GenerationSession]:
        return sorted(self._sessions.values(), key=lambda s: s.started_at)

    def __len__(self) -> int:
        return len(self._sessions)

    def reap_stale(self, max_age: float = SESSION_MAX_AGE_SECONDS, now: Optional[float] = None) -> List[GenerationSession]:
        current = self._clock() if now is None else now
        stale = [s for s in self._sessions.values() if s.age(current) > max_age]
        for session in stale:
            self.end(session)
            logger.warning(f"Reaped stale session {session.key} (user {session.user_id}, age {session.age(current):.0f}s > {max_age}s).")
        return stale
# ================================== SessionRegistry end ==================================

# services/sessions.py end
