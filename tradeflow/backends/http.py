"""HTTP backend talking to a PostgREST/storage style hosted API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

import httpx

from ..config import PricingPolicy
from ..constants import DEFAULT_ASSET_BUCKET
from ..errors import (
    AssetUploadError,
    BackendError,
    EligibilityCheckError,
    PersistenceError,
)
from .base import EligibilityResponse, MarketplaceBackend

logger = logging.getLogger(__name__)

# Free-by-default on the hosted pricing endpoint only ever covered the
# shortest duration.
HOSTED_FREE_OPTIONS = ["3_days"]


def _error_from_response(
    response: httpx.Response, error_cls: Type[BackendError], fallback: str
) -> BackendError:
    """Build a backend error, keeping the server's message verbatim."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        details = {k: body[k] for k in ("details", "hint") if body.get(k)}
        return error_cls(body["message"], code=body.get("code"), details=details)
    return error_cls(f"{fallback} (HTTP {response.status_code})", code=str(response.status_code))


class HttpBackend(MarketplaceBackend):
    """Marketplace backend reached over HTTP with ``httpx``."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        asset_bucket: str = DEFAULT_ASSET_BUCKET,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.asset_bucket = asset_bucket
        self.timeout = timeout
        self._client = client

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self, identity_token: Optional[str] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["apikey"] = self.api_key
        bearer = identity_token or self.api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            await self.connect()
        return await self._client.post(url, **kwargs)

    async def _rpc(
        self,
        name: str,
        params: Dict[str, Any],
        error_cls: Type[BackendError],
        identity_token: Optional[str] = None,
    ) -> Any:
        try:
            response = await self._post(
                f"/rest/v1/rpc/{name}",
                json=params,
                headers=self._headers(identity_token),
            )
        except httpx.HTTPError as e:
            raise error_cls(f"Request to {name} failed: {e}") from e
        if response.is_error:
            raise _error_from_response(response, error_cls, f"{name} failed")
        return response.json() if response.content else None

    # ------------------------------------------------------------------
    async def check_eligibility(
        self, identity_token: str, record_kind: str
    ) -> EligibilityResponse:
        data = await self._rpc(
            "can_user_post_job",
            {"user_id_param": identity_token},
            EligibilityCheckError,
            identity_token,
        )
        if not isinstance(data, dict) or "can_post" not in data:
            raise EligibilityCheckError("Failed to verify posting permissions.")
        return EligibilityResponse(
            allowed=bool(data["can_post"]),
            reason=data.get("reason"),
            current_usage=data.get("jobs_used"),
            limit=data.get("jobs_limit"),
        )

    async def upload_asset(
        self, path: str, content: bytes, content_type: str = "image/jpeg"
    ) -> str:
        headers = self._headers()
        headers.update(
            {"Content-Type": content_type, "cache-control": "3600", "x-upsert": "false"}
        )
        try:
            response = await self._post(
                f"/storage/v1/object/{self.asset_bucket}/{path}",
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise AssetUploadError(f"Upload of {path} failed: {e}") from e
        if response.is_error:
            raise _error_from_response(response, AssetUploadError, f"Upload of {path} failed")
        return f"{self.base_url}/storage/v1/object/public/{self.asset_bucket}/{path}"

    async def insert_record(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = self._headers()
        headers["Prefer"] = "return=representation"
        try:
            response = await self._post(f"/rest/v1/{table}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Could not reach record store: {e}") from e
        if response.is_error:
            raise _error_from_response(response, PersistenceError, f"Insert into {table} failed")
        rows = response.json()
        if isinstance(rows, list):
            if not rows:
                raise PersistenceError(f"Insert into {table} returned no row")
            return rows[0]
        return rows

    async def increment_usage(self, identity_token: str, usage_kind: str) -> None:
        await self._rpc(
            "increment_subscription_usage",
            {"user_id_param": identity_token, "usage_type": usage_kind},
            BackendError,
            identity_token,
        )

    async def fetch_pricing_policy(self) -> PricingPolicy:
        data = await self._rpc("get_job_posting_pricing", {}, BackendError) or {}
        logger.debug(f"Fetched pricing policy: {data}")
        return PricingPolicy(
            prices=data.get("prices") or {},
            is_free_by_default=bool(data.get("is_free")),
            free_options=HOSTED_FREE_OPTIONS,
        )
