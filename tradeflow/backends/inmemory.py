"""In-memory marketplace backend for tests and local runs."""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from ..config import PricingPolicy
from ..errors import AssetUploadError, EligibilityCheckError, PersistenceError
from .base import EligibilityResponse, MarketplaceBackend


class InMemoryBackend(MarketplaceBackend):
    """Simple in-process stand-in for the hosted backend.

    Identities without an entry in ``subscriptions`` are treated as having no
    subscription. ``subscriptions`` maps identity to ``(usage, limit)``;
    a ``None`` limit means unlimited.
    """

    def __init__(
        self,
        subscriptions: Optional[Dict[str, Tuple[int, Optional[int]]]] = None,
        pricing_policy: Optional[PricingPolicy] = None,
        public_base_url: str = "memory://assets",
    ) -> None:
        self.subscriptions: Dict[str, Tuple[int, Optional[int]]] = dict(subscriptions or {})
        self.pricing_policy = pricing_policy or PricingPolicy()
        self.public_base_url = public_base_url
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.assets: Dict[str, bytes] = {}
        self.usage_increments: List[Tuple[str, str]] = []
        self.eligibility_calls: List[Tuple[str, str]] = []
        self.fail_eligibility: Optional[str] = None
        self.fail_upload: Optional[str] = None
        self.fail_insert: Optional[str] = None
        self.fail_increment: Optional[str] = None
        self.blocked: set[str] = set()

    async def check_eligibility(
        self, identity_token: str, record_kind: str
    ) -> EligibilityResponse:
        self.eligibility_calls.append((identity_token, record_kind))
        if self.fail_eligibility:
            raise EligibilityCheckError(self.fail_eligibility)
        if identity_token in self.blocked:
            return EligibilityResponse(allowed=False, reason="unauthorized")
        if identity_token not in self.subscriptions:
            return EligibilityResponse(allowed=False, reason="no_subscription")
        usage, limit = self.subscriptions[identity_token]
        if limit is not None and usage >= limit:
            return EligibilityResponse(
                allowed=False, reason="quota_exceeded", current_usage=usage, limit=limit
            )
        return EligibilityResponse(allowed=True, current_usage=usage, limit=limit)

    async def upload_asset(
        self, path: str, content: bytes, content_type: str = "image/jpeg"
    ) -> str:
        if self.fail_upload:
            raise AssetUploadError(self.fail_upload)
        self.assets[path] = content
        return f"{self.public_base_url}/{path}"

    async def insert_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_insert:
            raise PersistenceError(self.fail_insert, code="23514")
        stored = dict(payload)
        stored["id"] = str(uuid.uuid4())
        self.tables[table].append(stored)
        return stored

    async def increment_usage(self, identity_token: str, usage_kind: str) -> None:
        if self.fail_increment:
            raise RuntimeError(self.fail_increment)
        self.usage_increments.append((identity_token, usage_kind))
        if identity_token in self.subscriptions:
            usage, limit = self.subscriptions[identity_token]
            self.subscriptions[identity_token] = (usage + 1, limit)

    async def fetch_pricing_policy(self) -> PricingPolicy:
        return self.pricing_policy.model_copy(deep=True)
