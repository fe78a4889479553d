"""Pre-submission eligibility gate."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .backends import MarketplaceBackend

logger = logging.getLogger(__name__)


class DenialReason(str, Enum):
    NO_SUBSCRIPTION = "no_subscription"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAUTHORIZED = "unauthorized"


_REASON_ALIASES = {
    "no_subscription": DenialReason.NO_SUBSCRIPTION,
    "quota_exceeded": DenialReason.QUOTA_EXCEEDED,
    "job_limit_exceeded": DenialReason.QUOTA_EXCEEDED,
    "limit_exceeded": DenialReason.QUOTA_EXCEEDED,
    "unauthorized": DenialReason.UNAUTHORIZED,
}


class EligibilityDecision(BaseModel):
    """Whether a submission may proceed, and why not."""

    allowed: bool
    reason: Optional[DenialReason] = None
    current_usage: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def allow(cls) -> "EligibilityDecision":
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        reason: DenialReason,
        current_usage: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> "EligibilityDecision":
        return cls(allowed=False, reason=reason, current_usage=current_usage, limit=limit)

    def message(self) -> Optional[str]:
        """User-facing explanation of a denial."""
        if self.allowed:
            return None
        if self.reason is DenialReason.NO_SUBSCRIPTION:
            return (
                "You need an active subscription to post jobs. "
                "Please visit the Subscription page."
            )
        if self.reason is DenialReason.QUOTA_EXCEEDED:
            if self.current_usage is not None and self.limit is not None:
                return (
                    "You have reached your job posting limit "
                    f"({self.current_usage}/{self.limit}). Please upgrade your subscription."
                )
            return "You have reached your job posting limit. Please upgrade your subscription."
        return "You are not authorized to post jobs at this time."


def normalize_reason(raw: Optional[str]) -> DenialReason:
    if raw is None:
        return DenialReason.UNAUTHORIZED
    return _REASON_ALIASES.get(raw.lower(), DenialReason.UNAUTHORIZED)


class EligibilityGate:
    """Checks quota and subscription state against the backend.

    Denials are returned as values. Exceptions raised by the backend are
    re-raised unchanged; the shipped backends raise ``EligibilityCheckError``
    for transport failures.
    """

    def __init__(self, backend: MarketplaceBackend) -> None:
        self._backend = backend

    async def check(
        self, identity_token: Optional[str], record_kind: str
    ) -> EligibilityDecision:
        if not identity_token:
            logger.info(f"Eligibility denied for {record_kind}: no identity")
            return EligibilityDecision.deny(DenialReason.UNAUTHORIZED)

        response = await self._backend.check_eligibility(identity_token, record_kind)
        if response.allowed:
            return EligibilityDecision.allow()

        decision = EligibilityDecision.deny(
            normalize_reason(response.reason),
            current_usage=response.current_usage,
            limit=response.limit,
        )
        logger.info(
            f"Eligibility denied for {record_kind}: {decision.reason.value} "
            f"({decision.current_usage}/{decision.limit})"
        )
        return decision
