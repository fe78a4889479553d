"""Submission pipeline run when a workflow's final step validates."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .backends import MarketplaceBackend
from .calculators import compute_expiration, compute_price
from .config import PricingPolicy
from .contracts import AssetUpload, Fields, SubmissionRecord, WorkflowDefinition
from .errors import BackendError
from .gate import DenialReason, EligibilityGate

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "An unexpected error occurred. Please try again."


class SubmissionContext(BaseModel):
    """Per-submission inputs that do not live in the workflow fields."""

    identity_token: Optional[str] = None
    now: datetime
    pricing_policy: PricingPolicy = Field(default_factory=PricingPolicy)
    asset: Optional[AssetUpload] = None


class SubmissionStatus(str, Enum):
    COMPLETED = "completed"
    DENIED = "denied"
    FAILED = "failed"


class SubmissionError(BaseModel):
    """Structured, user-displayable reason a submission did not complete."""

    kind: Literal["eligibility", "gate_unavailable", "persistence", "unexpected"]
    message: str
    reason: Optional[DenialReason] = None
    current_usage: Optional[int] = None
    limit: Optional[int] = None
    code: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class Notification(BaseModel):
    title: str
    description: str
    expires_at: Optional[datetime] = None


class SubmissionResult(BaseModel):
    status: SubmissionStatus
    record: Optional[SubmissionRecord] = None
    stored: Optional[Dict[str, Any]] = None
    error: Optional[SubmissionError] = None
    notification: Optional[Notification] = None
    navigate_to: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is SubmissionStatus.COMPLETED


def asset_path(identity_token: Optional[str], asset: AssetUpload, now: datetime) -> str:
    """Storage path for an uploaded asset: ``{identity}/{millis}{suffix}``."""
    suffix = PurePosixPath(asset.filename).suffix or ".jpg"
    owner = identity_token or "anonymous"
    return f"{owner}/{int(now.timestamp() * 1000)}{suffix.lower()}"


class SubmissionPipeline:
    """Runs upload, eligibility, persistence and usage accounting in order.

    Asset upload and usage increments are best-effort. Eligibility denials and
    persistence failures stop the pipeline before anything further happens.
    Uploaded assets are not removed when a later step fails.
    """

    def __init__(
        self, backend: MarketplaceBackend, gate: Optional[EligibilityGate] = None
    ) -> None:
        self._backend = backend
        self._gate = gate or EligibilityGate(backend)

    @property
    def backend(self) -> MarketplaceBackend:
        return self._backend

    async def run(
        self,
        definition: WorkflowDefinition,
        fields: Fields,
        context: SubmissionContext,
    ) -> SubmissionResult:
        try:
            return await self._run(definition, fields, context)
        except Exception as e:
            logger.exception(f"Unexpected failure submitting {definition.name}")
            return SubmissionResult(
                status=SubmissionStatus.FAILED,
                error=SubmissionError(kind="unexpected", message=str(e) or GENERIC_FAILURE),
            )

    async def _run(
        self,
        definition: WorkflowDefinition,
        fields: Fields,
        context: SubmissionContext,
    ) -> SubmissionResult:
        warnings: List[str] = []
        asset_url = await self._upload_asset(definition, fields, context, warnings)

        if definition.requires_eligibility:
            try:
                decision = await self._gate.check(
                    context.identity_token, definition.record_kind
                )
            except BackendError as e:
                logger.error(f"Eligibility check for {definition.name} failed: {e.message}")
                return SubmissionResult(
                    status=SubmissionStatus.FAILED,
                    error=SubmissionError(
                        kind="gate_unavailable",
                        message=f"Failed to verify posting permissions: {e.message}",
                        code=e.code,
                        details=e.details,
                    ),
                    warnings=warnings,
                )
            if not decision.allowed:
                return SubmissionResult(
                    status=SubmissionStatus.DENIED,
                    error=SubmissionError(
                        kind="eligibility",
                        message=decision.message(),
                        reason=decision.reason,
                        current_usage=decision.current_usage,
                        limit=decision.limit,
                    ),
                    warnings=warnings,
                )

        record = self.build_record(definition, fields, context, asset_url)

        table = definition.table or definition.record_kind
        try:
            stored = await self._backend.insert_record(table, record.to_payload())
        except BackendError as e:
            logger.error(f"Persisting {definition.record_kind} failed: {e.message}")
            return SubmissionResult(
                status=SubmissionStatus.FAILED,
                record=record,
                error=SubmissionError(
                    kind="persistence", message=e.message, code=e.code, details=e.details
                ),
                warnings=warnings,
            )
        logger.info(f"Stored {definition.record_kind} {stored.get('id')}")

        await self._increment_usage(definition, context, warnings)

        return SubmissionResult(
            status=SubmissionStatus.COMPLETED,
            record=record,
            stored=stored,
            notification=self._notification(definition, record),
            navigate_to=(
                definition.completion_target(fields) if definition.completion_target else None
            ),
            warnings=warnings,
        )

    def build_record(
        self,
        definition: WorkflowDefinition,
        fields: Fields,
        context: SubmissionContext,
        asset_url: Optional[str] = None,
    ) -> SubmissionRecord:
        """Merge the collected fields with their derived values."""
        values = definition.build_record(dict(fields))

        expires_at = None
        if definition.duration_field:
            expires_at = compute_expiration(
                fields.get(definition.duration_field), context.now
            ).expires_at

        final_price = None
        if definition.price_option_field:
            option = fields.get(definition.price_option_field)
            base = definition.base_price_for(option)
            if base is not None:
                final_price = compute_price(option, base, context.pricing_policy).final_price

        return SubmissionRecord(
            kind=definition.record_kind,
            values=values,
            expires_at=expires_at,
            final_price=final_price,
            asset_url=asset_url,
            asset_field=definition.asset_field or "asset_url",
            created_at=context.now,
        )

    async def _upload_asset(
        self,
        definition: WorkflowDefinition,
        fields: Fields,
        context: SubmissionContext,
        warnings: List[str],
    ) -> Optional[str]:
        asset = context.asset
        if asset is None or definition.asset_field is None:
            return None
        if definition.accepts_asset is not None and not definition.accepts_asset(fields):
            return None

        path = asset_path(context.identity_token, asset, context.now)
        try:
            url = await self._backend.upload_asset(path, asset.content, asset.content_type)
        except Exception as e:
            logger.warning(f"Asset upload to {path} failed, continuing without it: {e}")
            warnings.append(f"Photo upload failed: {e}")
            return None
        logger.info(f"Uploaded asset {path}")
        return url

    async def _increment_usage(
        self,
        definition: WorkflowDefinition,
        context: SubmissionContext,
        warnings: List[str],
    ) -> None:
        if not definition.usage_kind or not context.identity_token:
            return
        try:
            await self._backend.increment_usage(context.identity_token, definition.usage_kind)
        except Exception as e:
            logger.warning(
                f"Usage increment ({definition.usage_kind}) failed after record was stored: {e}"
            )
            warnings.append(f"Usage counter not updated: {e}")

    @staticmethod
    def _notification(
        definition: WorkflowDefinition, record: SubmissionRecord
    ) -> Notification:
        if record.expires_at is None:
            return Notification(title=definition.success_title, description=definition.success_title)
        return Notification(
            title=definition.success_title,
            description=f"Active until {record.expires_at:%d %B %Y}",
            expires_at=record.expires_at,
        )
