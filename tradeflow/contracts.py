"""Core data contracts for tradeflow workflows."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import STEP_ERROR_KEY
from .errors import DefinitionError


Fields = Dict[str, Any]


class ValidationResult(BaseModel):
    """Outcome of a step validator: ok, or reasons keyed by field."""

    errors: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def failure(cls, field: str, message: str) -> "ValidationResult":
        return cls(errors={field: [message]})

    @classmethod
    def step_failure(cls, message: str) -> "ValidationResult":
        """Failure attributed to the whole step rather than one field."""
        return cls(errors={STEP_ERROR_KEY: [message]})

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        merged = {key: list(value) for key, value in self.errors.items()}
        for key, messages in other.errors.items():
            merged.setdefault(key, []).extend(messages)
        return ValidationResult(errors=merged)

    def messages(self) -> List[str]:
        """Flatten all reasons in field order."""
        return [message for values in self.errors.values() for message in values]


Validator = Callable[[Fields], ValidationResult]


def _always_valid(fields: Fields) -> ValidationResult:
    return ValidationResult.success()


class SkipRule(BaseModel):
    """Conditional jump evaluated after a step validates.

    Exactly one of ``goto`` (another step id) or ``redirect`` (an external
    target that terminates the workflow) must be set.
    """

    when: Callable[[Fields], bool]
    goto: Optional[str] = None
    redirect: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "SkipRule":
        if (self.goto is None) == (self.redirect is None):
            raise ValueError("SkipRule needs exactly one of 'goto' or 'redirect'")
        return self

    @property
    def is_redirect(self) -> bool:
        return self.redirect is not None


class StepSpec(BaseModel):
    """Defines one screen of a workflow."""

    id: str
    title: str = ""
    fields: List[str] = Field(default_factory=list)
    validate_fields: Validator = Field(default=_always_valid, alias="validate")
    skip_rules: List[SkipRule] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def validate_step(self, fields: Fields) -> ValidationResult:
        return self.validate_fields(fields)

    def match_skip(self, fields: Fields) -> Optional[SkipRule]:
        """Return the first skip rule matching ``fields``, if any."""
        for rule in self.skip_rules:
            if rule.when(fields):
                return rule
        return None


class WorkflowState(BaseModel):
    """Mutable progress of one workflow instance.

    ``history`` holds the indices visited before the current one, most recent
    last. It is what ``go_back`` pops from.
    """

    step_index: int = Field(default=0, alias="stepIndex", ge=0)
    fields: Fields = Field(default_factory=dict)
    history: List[int] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        """Serialize state to the snapshot JSON form."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "WorkflowState":
        """Deserialize state from snapshot JSON."""
        return cls.model_validate_json(data)


class AssetUpload(BaseModel):
    """Binary asset kept in memory until submission."""

    content: bytes
    filename: str = "upload.jpg"
    content_type: str = "image/jpeg"


class DerivedPricing(BaseModel):
    """Computed price for a selected option. Never stored permanently."""

    option_id: str
    base_price: Decimal
    override_price: Optional[Decimal] = None
    final_price: Decimal
    was_overridden: bool = False
    override_reason: Optional[str] = None

    @property
    def display_price(self) -> str:
        return "Free" if self.final_price == 0 else f"£{self.final_price}"


class ExpirationComputation(BaseModel):
    """Expiration date derived from a duration code and a reference time."""

    duration_code: str
    days: int
    now: datetime
    expires_at: datetime
    was_capped: bool = False


class SubmissionRecord(BaseModel):
    """Fully built record handed to the persistence boundary."""

    kind: str
    values: Fields = Field(default_factory=dict)
    expires_at: Optional[datetime] = None
    final_price: Optional[Decimal] = None
    asset_url: Optional[str] = None
    asset_field: str = "asset_url"
    created_at: datetime

    def to_payload(self) -> Fields:
        """Flatten into the map sent to the record store."""
        payload = dict(self.values)
        payload["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        payload["price"] = str(self.final_price) if self.final_price is not None else None
        payload[self.asset_field] = self.asset_url
        payload["created_at"] = self.created_at.isoformat()
        return payload


RecordBuilder = Callable[[Fields], Fields]
TargetResolver = Callable[[Fields], Optional[str]]


def _passthrough(fields: Fields) -> Fields:
    return dict(fields)


class WorkflowDefinition(BaseModel):
    """Static description of a stepped workflow."""

    name: str
    steps: List[StepSpec]
    record_kind: str
    table: Optional[str] = None
    duration_field: Optional[str] = None
    price_option_field: Optional[str] = None
    base_prices: Dict[str, Decimal] = Field(default_factory=dict)
    asset_field: Optional[str] = None
    accepts_asset: Optional[Callable[[Fields], bool]] = None
    usage_kind: Optional[str] = None
    requires_eligibility: bool = True
    ephemeral_fields: List[str] = Field(default_factory=list)
    min_reachable_step: int = 0
    build_record: RecordBuilder = _passthrough
    completion_target: Optional[TargetResolver] = None
    success_title: str = "Submitted successfully"

    @model_validator(mode="after")
    def _check_steps(self) -> "WorkflowDefinition":
        if not self.steps:
            raise DefinitionError(f"Workflow {self.name!r} has no steps")
        ids = [step.id for step in self.steps]
        duplicates = sorted({step_id for step_id in ids if ids.count(step_id) > 1})
        if duplicates:
            raise DefinitionError(
                f"Workflow {self.name!r} has duplicate step ids: {', '.join(duplicates)}"
            )
        for step in self.steps:
            for rule in step.skip_rules:
                if rule.goto is not None and rule.goto not in ids:
                    raise DefinitionError(
                        f"Step {step.id!r} of {self.name!r} skips to unknown step {rule.goto!r}"
                    )
        if not 0 <= self.min_reachable_step < len(self.steps):
            raise DefinitionError(
                f"min_reachable_step {self.min_reachable_step} out of range for {self.name!r}"
            )
        return self

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)

    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def base_price_for(self, option_id: Optional[str]) -> Optional[Decimal]:
        if option_id is None:
            return None
        return self.base_prices.get(option_id)
