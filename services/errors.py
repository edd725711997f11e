# services/errors.py
# -*- coding: utf-8 -*-
"""
Exception types and denial reasons shared by the services and handlers.
"""

import enum
from dataclasses import dataclass
from typing import Optional

SAFETY_KEYWORDS = ("safety", "policy", "harmful", "inappropriate", "blocked")
QUOTA_KEYWORDS = ("quota", "rate limit", "too many requests")
AUTH_KEYWORDS = ("api key", "authentication", "unauthorized")


class DenialReason(str, enum.Enum):
    NOT_MEMBER = "not_member"
    MEMBERSHIP_UNVERIFIED = "membership_unverified"
    DAILY_LIMIT = "daily_limit"
    COOLDOWN = "cooldown"
    BUSY = "busy"


@dataclass(frozen=True)
class AdmissionAllowed:
    remaining_daily_quota: int


@dataclass(frozen=True)
class AdmissionDenied:
    """Result value for a rejected request. Never raised."""
    reason: DenialReason
    retry_after: Optional[int] = None
    remaining_daily_quota: Optional[int] = None


class GenerationErrorKind(str, enum.Enum):
    SAFETY = "safety"
    QUOTA = "quota"
    AUTH = "auth"
    GENERIC = "generic"


class GenerationError(Exception):
    """Raised by the content generator. `kind` selects the user-facing message."""

    def __init__(self, kind: GenerationErrorKind, detail: str = ""):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


class UploadError(Exception):
    """Raised by the blob store when an object cannot be written."""
    pass


class ShareConfirmationError(Exception):
    """Raised when a share confirmation token is unknown, reused or foreign."""
    pass


# ================================== classify_generation_error(): Maps status/reason/text to an error kind ==================================
def classify_generation_error(status_code: Optional[int] = None, reason: Optional[str] = None, message: str = "") -> GenerationErrorKind:
    if status_code == 429:
        return GenerationErrorKind.QUOTA
    if status_code in (401, 403):
        return GenerationErrorKind.AUTH
    if reason:
        return GenerationErrorKind.SAFETY
    lowered = (message or "").lower()
    if any(word in lowered for word in SAFETY_KEYWORDS):
        return GenerationErrorKind.SAFETY
    if any(word in lowered for word in QUOTA_KEYWORDS):
        return GenerationErrorKind.QUOTA
    if any(word in lowered for word in AUTH_KEYWORDS):
        return GenerationErrorKind.AUTH
    return GenerationErrorKind.GENERIC
# ================================== classify_generation_error() end ==================================

# services/errors.py end
