"""Step transition controller for stepped workflows."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .calculators import compute_expiration, compute_price
from .config import PricingPolicy
from .contracts import (
    AssetUpload,
    DerivedPricing,
    ExpirationComputation,
    Fields,
    StepSpec,
    ValidationResult,
    WorkflowDefinition,
    WorkflowState,
)
from .errors import WorkflowClosedError
from .pipeline import (
    SubmissionContext,
    SubmissionPipeline,
    SubmissionResult,
    SubmissionStatus,
)
from .state import WorkflowStateStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowPhase(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class TransitionOutcome(str, Enum):
    ADVANCED = "advanced"
    RETREATED = "retreated"
    UNCHANGED = "unchanged"
    INVALID = "invalid"
    REDIRECTED = "redirected"
    COMPLETED = "completed"
    DENIED = "denied"
    FAILED = "failed"
    BUSY = "busy"


class TransitionResult(BaseModel):
    """What a ``go_next``/``go_back`` call did."""

    outcome: TransitionOutcome
    phase: WorkflowPhase
    step_index: int
    step_id: str
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    redirect_to: Optional[str] = None
    submission: Optional[SubmissionResult] = None


class WorkflowController:
    """Drives one workflow instance for one user session.

    Only the controller mutates the workflow state. Each successful transition
    writes the snapshot before the new state is committed in memory, so a
    failed write leaves the previous state in place.
    """

    def __init__(
        self,
        definition: WorkflowDefinition,
        state_store: WorkflowStateStore,
        pipeline: SubmissionPipeline,
        identity_token: Optional[str] = None,
        pricing_policy: Optional[PricingPolicy] = None,
        min_reachable_step: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.definition = definition
        self._state_store = state_store
        self._pipeline = pipeline
        self.identity_token = identity_token
        self._pricing_policy = pricing_policy or PricingPolicy()
        self._min_reachable_override = min_reachable_step
        self._min_reachable = self._default_min_reachable()
        self._preset_fields: Fields = {}
        self._clock = clock
        self._state = WorkflowState()
        self._phase = WorkflowPhase.EDITING
        self._asset: Optional[AssetUpload] = None
        self._lock = asyncio.Lock()
        self.redirect_to: Optional[str] = None
        self.last_submission: Optional[SubmissionResult] = None

    # ------------------------------------------------------------------
    # Introspection
    @property
    def phase(self) -> WorkflowPhase:
        return self._phase

    @property
    def state(self) -> WorkflowState:
        return self._state.model_copy(deep=True)

    @property
    def current_step(self) -> StepSpec:
        return self.definition.steps[self._state.step_index]

    @property
    def min_reachable_step(self) -> int:
        return self._min_reachable

    @property
    def is_terminal(self) -> bool:
        return self._phase in (WorkflowPhase.COMPLETED, WorkflowPhase.TERMINATED)

    # ------------------------------------------------------------------
    # Lifecycle
    async def start(
        self,
        initial_state: Optional[WorkflowState] = None,
        start_at: Optional[str] = None,
        preset_fields: Optional[Fields] = None,
    ) -> WorkflowState:
        """Mount the workflow.

        An explicit ``initial_state`` wins. A pre-selected branch (``start_at``)
        starts at that step without rehydrating. Otherwise the persisted
        snapshot is restored when it fits this definition.
        """
        self._phase = WorkflowPhase.EDITING
        self.redirect_to = None
        self.last_submission = None
        self._asset = None
        self._min_reachable = self._default_min_reachable()
        self._preset_fields = dict(preset_fields or {})

        if initial_state is not None:
            state = initial_state.model_copy(deep=True)
            self._check_in_range(state)
        elif start_at is not None:
            index = self.definition.index_of(start_at)
            state = WorkflowState(step_index=index, fields=dict(self._preset_fields))
            if self._min_reachable_override is None:
                self._min_reachable = index
        else:
            state = await self._restore() or WorkflowState(
                step_index=self._min_reachable, fields=dict(self._preset_fields)
            )

        self._state = state
        logger.info(
            f"Started {self.definition.name} at step {self.current_step.id} "
            f"(index {state.step_index})"
        )
        return self.state

    def _default_min_reachable(self) -> int:
        if self._min_reachable_override is not None:
            return self._min_reachable_override
        return self.definition.min_reachable_step

    async def _restore(self) -> Optional[WorkflowState]:
        state = await self._state_store.load()
        if state is None:
            return None
        try:
            self._check_in_range(state)
        except ValueError as e:
            logger.warning(f"Ignoring snapshot for {self.definition.name}: {e}")
            return None
        logger.info(f"Resumed {self.definition.name} at index {state.step_index}")
        return state

    def _check_in_range(self, state: WorkflowState) -> None:
        last = self.definition.last_index
        indices = [state.step_index, *state.history]
        if any(index > last for index in indices):
            raise ValueError(f"step index out of range 0..{last}: {indices}")

    def attach_asset(self, asset: Optional[AssetUpload]) -> None:
        """Hold an optional asset in memory for the submission."""
        self._ensure_open()
        self._asset = asset

    async def cancel(self, clear_snapshot: bool = False) -> None:
        """Abandon the workflow. The snapshot stays unless asked otherwise."""
        self._ensure_open()
        if self._lock.locked():
            raise RuntimeError("Cannot cancel while a transition is in flight")
        if clear_snapshot:
            await self._state_store.clear()
        self._state = WorkflowState(step_index=self._min_reachable)
        self._asset = None
        self._phase = WorkflowPhase.TERMINATED
        logger.info(f"Cancelled {self.definition.name}")

    async def reset(self) -> WorkflowState:
        """Start over: drop the snapshot and every value entered since launch."""
        self._ensure_open()
        if self._lock.locked():
            raise RuntimeError("Cannot reset while a transition is in flight")
        await self._state_store.clear()
        self._state = WorkflowState(
            step_index=self._min_reachable, fields=dict(self._preset_fields)
        )
        self._asset = None
        logger.info(f"Reset {self.definition.name}")
        return self.state

    # ------------------------------------------------------------------
    # Derived values
    def update_pricing_policy(self, policy: PricingPolicy) -> None:
        self._pricing_policy = policy

    async def refresh_pricing(self) -> PricingPolicy:
        """Replace the pricing policy with the backend's current one."""
        self._pricing_policy = await self._pipeline.backend.fetch_pricing_policy()
        return self._pricing_policy

    def price_preview(self, option: Optional[str] = None) -> Optional[DerivedPricing]:
        field = self.definition.price_option_field
        option = option or (self._state.fields.get(field) if field else None)
        base = self.definition.base_price_for(option)
        if base is None:
            return None
        return compute_price(option, base, self._pricing_policy)

    def expiration_preview(self, code: Optional[str] = None) -> Optional[ExpirationComputation]:
        field = self.definition.duration_field
        if field is None:
            return None
        code = code or self._state.fields.get(field)
        if code is None:
            return None
        return compute_expiration(code, self._clock())

    # ------------------------------------------------------------------
    # Transitions
    async def go_next(self, fields: Optional[Fields] = None) -> TransitionResult:
        """Validate the current step and move forward, or submit on the last step."""
        self._ensure_open()
        if self._lock.locked():
            return self._result(TransitionOutcome.BUSY)

        async with self._lock:
            step = self.current_step
            candidate = {**self._state.fields, **(fields or {})}

            validation = self._validate(step, candidate)
            if not validation.ok:
                logger.info(f"Step {step.id} of {self.definition.name} failed validation")
                return self._result(TransitionOutcome.INVALID, errors=validation.errors)

            try:
                rule = step.match_skip(candidate)
            except Exception as e:
                logger.warning(f"Skip rule on step {step.id} raised: {e}")
                return self._result(
                    TransitionOutcome.INVALID,
                    errors=ValidationResult.step_failure(
                        f"Could not evaluate this step: {e}"
                    ).errors,
                )

            if rule is not None and rule.is_redirect:
                self._phase = WorkflowPhase.TERMINATED
                self.redirect_to = rule.redirect
                logger.info(f"{self.definition.name} redirected to {rule.redirect} from {step.id}")
                return self._result(TransitionOutcome.REDIRECTED, redirect_to=rule.redirect)

            current = self._state.step_index
            if rule is not None:
                target = self.definition.index_of(rule.goto)
            elif current == self.definition.last_index:
                return await self._submit(candidate)
            else:
                target = current + 1

            new_state = WorkflowState(
                step_index=target,
                fields=candidate,
                history=[*self._state.history, current],
            )
            await self._state_store.save(new_state)
            self._state = new_state
            logger.info(
                f"{self.definition.name}: {step.id} -> {self.current_step.id}"
            )
            return self._result(TransitionOutcome.ADVANCED)

    async def go_back(self) -> TransitionResult:
        """Return to the previously visited step without re-running skip rules."""
        self._ensure_open()
        if self._lock.locked():
            return self._result(TransitionOutcome.BUSY)

        async with self._lock:
            history = self._state.history
            if (
                not history
                or self._state.step_index <= self._min_reachable
                or history[-1] < self._min_reachable
            ):
                return self._result(TransitionOutcome.UNCHANGED)

            new_state = WorkflowState(
                step_index=history[-1],
                fields=dict(self._state.fields),
                history=history[:-1],
            )
            await self._state_store.save(new_state)
            self._state = new_state
            logger.info(f"{self.definition.name}: back to {self.current_step.id}")
            return self._result(TransitionOutcome.RETREATED)

    # ------------------------------------------------------------------
    def _validate(self, step: StepSpec, fields: Fields) -> ValidationResult:
        try:
            return step.validate_step(fields)
        except Exception as e:
            logger.warning(f"Validator for step {step.id} raised: {e}")
            return ValidationResult.step_failure(f"Could not validate this step: {e}")

    async def _submit(self, fields: Fields) -> TransitionResult:
        self._phase = WorkflowPhase.SUBMITTING
        context = SubmissionContext(
            identity_token=self.identity_token,
            now=self._clock(),
            pricing_policy=self._pricing_policy,
            asset=self._asset,
        )
        logger.info(f"Submitting {self.definition.name}")
        try:
            submission = await self._pipeline.run(self.definition, fields, context)
        finally:
            self._phase = WorkflowPhase.EDITING
        self.last_submission = submission

        if not submission.ok:
            outcome = (
                TransitionOutcome.DENIED
                if submission.status is SubmissionStatus.DENIED
                else TransitionOutcome.FAILED
            )
            logger.info(
                f"Submission of {self.definition.name} {outcome.value}: "
                f"{submission.error.message if submission.error else ''}"
            )
            return self._result(outcome, submission=submission)

        self._state = self._state.model_copy(update={"fields": fields})
        self._asset = None
        self._phase = WorkflowPhase.COMPLETED
        logger.info(f"Completed {self.definition.name}")

        try:
            await self._state_store.clear()
        except Exception as e:
            logger.warning(
                f"Could not clear snapshot {self._state_store.key} after completion: {e}"
            )
            submission.warnings.append(f"Saved progress was not cleared: {e}")
        return self._result(TransitionOutcome.COMPLETED, submission=submission)

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise WorkflowClosedError(
                f"Workflow {self.definition.name} is {self._phase.value}; start it again to continue"
            )

    def _result(self, outcome: TransitionOutcome, **kwargs) -> TransitionResult:
        return TransitionResult(
            outcome=outcome,
            phase=self._phase,
            step_index=self._state.step_index,
            step_id=self.current_step.id,
            **kwargs,
        )
