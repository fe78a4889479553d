"""Tests for workflow definitions and validation results."""

from datetime import datetime, timezone
from decimal import Decimal

import pydantic
import pytest

from tradeflow.constants import STEP_ERROR_KEY
from tradeflow.contracts import (
    SkipRule,
    StepSpec,
    SubmissionRecord,
    ValidationResult,
    WorkflowDefinition,
)
from tradeflow.errors import DefinitionError


def _step(step_id, **kwargs):
    return StepSpec(id=step_id, **kwargs)


def test_duplicate_step_ids_rejected():
    with pytest.raises(DefinitionError, match="duplicate step ids: a"):
        WorkflowDefinition(name="wf", record_kind="x", steps=[_step("a"), _step("a")])


def test_skip_target_must_exist():
    rule = SkipRule(when=lambda f: True, goto="missing")
    with pytest.raises(DefinitionError, match="unknown step 'missing'"):
        WorkflowDefinition(
            name="wf", record_kind="x", steps=[_step("a", skip_rules=[rule]), _step("b")]
        )


def test_redirect_targets_need_no_step():
    rule = SkipRule(when=lambda f: True, redirect="/elsewhere")
    definition = WorkflowDefinition(
        name="wf", record_kind="x", steps=[_step("a", skip_rules=[rule])]
    )
    assert definition.steps[0].skip_rules[0].is_redirect


def test_skip_rule_needs_exactly_one_target():
    with pytest.raises(pydantic.ValidationError):
        SkipRule(when=lambda f: True)
    with pytest.raises(pydantic.ValidationError):
        SkipRule(when=lambda f: True, goto="a", redirect="/b")


def test_empty_definition_rejected():
    with pytest.raises(DefinitionError):
        WorkflowDefinition(name="wf", record_kind="x", steps=[])


def test_first_matching_skip_rule_wins():
    step = _step(
        "a",
        skip_rules=[
            SkipRule(when=lambda f: f.get("x") == 1, goto="c"),
            SkipRule(when=lambda f: True, goto="b"),
        ],
    )
    assert step.match_skip({"x": 1}).goto == "c"
    assert step.match_skip({}).goto == "b"


def test_step_without_validator_accepts_anything():
    assert _step("a").validate_step({}).ok


def test_validation_result_merge_and_messages():
    first = ValidationResult.failure("title", "Too short")
    second = ValidationResult.failure("title", "Required").merge(
        ValidationResult.step_failure("Broken")
    )
    merged = first.merge(second)
    assert merged.errors == {"title": ["Too short", "Required"], STEP_ERROR_KEY: ["Broken"]}
    assert merged.messages() == ["Too short", "Required", "Broken"]
    assert not merged.ok
    assert first.errors == {"title": ["Too short"]}


def test_index_lookup():
    definition = WorkflowDefinition(name="wf", record_kind="x", steps=[_step("a"), _step("b")])
    assert definition.index_of("b") == 1
    assert definition.last_index == 1
    with pytest.raises(KeyError):
        definition.index_of("z")


def test_payload_keeps_exact_money_value():
    record = SubmissionRecord(
        kind="job",
        values={"title": "Plumber"},
        final_price=Decimal("0.10") + Decimal("0.20"),
        created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )
    payload = record.to_payload()
    assert payload["price"] == "0.30"
    assert payload["asset_url"] is None
    assert payload["expires_at"] is None
