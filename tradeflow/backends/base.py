"""Base interface for the marketplace backend collaborators."""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import PricingPolicy


class EligibilityResponse(BaseModel):
    """Raw answer from the eligibility service."""

    allowed: bool
    reason: Optional[str] = None
    current_usage: Optional[int] = Field(default=None, alias="currentUsage")
    limit: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class MarketplaceBackend(metaclass=abc.ABCMeta):
    """Abstract boundary to auth-scoped quota checks, storage and records."""

    async def connect(self) -> None:
        """Open connections (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Release connections (no-op by default)."""
        pass

    @abc.abstractmethod
    async def check_eligibility(
        self, identity_token: str, record_kind: str
    ) -> EligibilityResponse:
        """Ask whether ``identity_token`` may create a ``record_kind`` record."""
        raise NotImplementedError

    @abc.abstractmethod
    async def upload_asset(
        self, path: str, content: bytes, content_type: str = "image/jpeg"
    ) -> str:
        """Store binary content at ``path`` and return its public URL."""
        raise NotImplementedError

    @abc.abstractmethod
    async def insert_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Persist ``payload`` and return the stored row including its id."""
        raise NotImplementedError

    @abc.abstractmethod
    async def increment_usage(self, identity_token: str, usage_kind: str) -> None:
        """Bump the usage counter of ``identity_token`` for ``usage_kind``."""
        raise NotImplementedError

    async def fetch_pricing_policy(self) -> PricingPolicy:
        """Return the pricing policy currently in force."""
        return PricingPolicy()
