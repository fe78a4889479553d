"""Extension form for an existing job posting."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from ..constants import DURATION_DAYS
from ..contracts import Fields, StepSpec, ValidationResult, WorkflowDefinition
from .validators import combine, one_of, require

EXTENSION_PRICES = {code: Decimal("0") for code in DURATION_DAYS}


def _confirmed(fields: Fields) -> ValidationResult:
    if fields.get("confirmed") is not True:
        return ValidationResult.failure("confirmed", "Please confirm the extension.")
    return ValidationResult.success()


def build_extension_record(fields: Fields) -> Dict[str, Any]:
    return {
        "job_id": fields.get("job_id"),
        "new_timeline": fields.get("timeline"),
    }


JOB_EXTENSION = WorkflowDefinition(
    name="job_extension",
    record_kind="job_extension",
    table="job_extensions",
    steps=[
        StepSpec(
            id="timeline",
            title="Choose a new timeline",
            fields=["timeline"],
            validate=combine(
                require("job_id", "No job selected for extension."),
                one_of("timeline", DURATION_DAYS, "Please choose how long to extend the job."),
            ),
        ),
        StepSpec(
            id="confirm",
            title="Confirm extension",
            fields=["confirmed"],
            validate=_confirmed,
        ),
    ],
    duration_field="timeline",
    price_option_field="timeline",
    base_prices=EXTENSION_PRICES,
    requires_eligibility=False,
    build_record=build_extension_record,
    completion_target=lambda fields: "/dashboard/company",
    success_title="Your job has been extended",
)
