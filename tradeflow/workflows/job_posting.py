"""Job posting wizard for companies and homeowners."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from ..constants import DURATION_DAYS
from ..contracts import Fields, SkipRule, StepSpec, WorkflowDefinition
from .validators import (
    combine,
    coordinates,
    number_range,
    one_of,
    optional,
    require,
    to_int,
)

VACANCY_FORM_PATH = "/jobs/vacancy/new"
MISSING_OWNER = "This job posting has lost its owner. Please start again."

PAY_FREQUENCIES = ["per_hour", "per_day", "per_week", "per_month", "per_year", "per_job"]

BASE_PRICES = {
    "3_days": Decimal("0"),
    "7_days": Decimal("10"),
    "2_weeks": Decimal("15"),
    "3_weeks": Decimal("20"),
    "4_weeks": Decimal("25"),
}


def _is_trades(fields: Fields) -> bool:
    return fields.get("posting_type") == "tradespeople"


def build_job_record(fields: Fields) -> Dict[str, Any]:
    short = (fields.get("short_description") or "").strip()
    long = (fields.get("long_description") or "").strip()
    coords = fields.get("location_coords") or {}
    role = fields.get("poster_role", "company")
    trades = _is_trades(fields)
    return {
        "company_id": fields.get("profile_id") if role == "company" else None,
        "homeowner_id": fields.get("profile_id") if role == "homeowner" else None,
        "title": (fields.get("profession") or "").strip(),
        "location": fields.get("full_address", ""),
        "latitude": coords.get("lat"),
        "longitude": coords.get("lon"),
        "work_location": "onsite",
        "description": f"{short}\n\n{long}" if long else short,
        "short_description": short,
        "country": "United Kingdom",
        "job_type": "contract" if trades else "full-time",
        "experience_level": "entry",
        "is_tradespeople_job": trades,
        "salary_min": to_int(fields.get("pay_min")),
        "salary_max": to_int(fields.get("pay_max")),
        "salary_period": fields.get("pay_frequency") or "per_year",
        "training_provided": bool(fields.get("training_provided", False)),
        "recruitment_timeline": fields.get("active_duration"),
        "is_active": True,
    }


def _dashboard(fields: Fields) -> str:
    if fields.get("poster_role") == "homeowner":
        return "/dashboard/homeowner"
    return "/dashboard/company"


JOB_POSTING = WorkflowDefinition(
    name="job_posting",
    record_kind="job",
    table="jobs",
    steps=[
        StepSpec(
            id="posting_type",
            title="What are you posting?",
            fields=["posting_type"],
            validate=one_of(
                "posting_type", ["employee", "tradespeople"], "Please select a job posting type."
            ),
            skip_rules=[
                SkipRule(
                    when=lambda f: f.get("posting_type") == "employee",
                    redirect=VACANCY_FORM_PATH,
                )
            ],
        ),
        StepSpec(
            id="duration",
            title="How long should it stay active?",
            fields=["active_duration"],
            validate=one_of(
                "active_duration",
                DURATION_DAYS,
                "Please select how long you want your job posting to be active.",
            ),
        ),
        StepSpec(
            id="details",
            title="Job details",
            fields=[
                "profession",
                "short_description",
                "long_description",
                "pay_min",
                "pay_max",
                "pay_frequency",
                "training_provided",
            ],
            validate=combine(
                require("profession", "Please enter the profession/trade/field."),
                require("short_description", "Please enter a short description."),
                number_range("pay_min", "pay_max", "Pay"),
                optional(
                    "pay_frequency",
                    one_of("pay_frequency", PAY_FREQUENCIES, "Please choose a pay frequency."),
                ),
            ),
        ),
        StepSpec(
            id="location",
            title="Where is the job?",
            fields=["full_address", "location_coords"],
            validate=combine(
                coordinates(
                    "location_coords", "Please select a location on the map. This is mandatory."
                ),
                one_of("posting_type", ["tradespeople"], MISSING_OWNER),
                require("profile_id", MISSING_OWNER),
            ),
        ),
    ],
    duration_field="active_duration",
    price_option_field="active_duration",
    base_prices=BASE_PRICES,
    asset_field="job_photo_url",
    accepts_asset=_is_trades,
    usage_kind="job",
    build_record=build_job_record,
    completion_target=_dashboard,
    success_title="Job Posted Successfully!",
)


def homeowner_launch(profile_id: str) -> Dict[str, Any]:
    """Launch arguments for homeowners, who only post trades jobs."""
    return {
        "start_at": "duration",
        "preset_fields": {
            "posting_type": "tradespeople",
            "poster_role": "homeowner",
            "profile_id": profile_id,
            "pay_frequency": "per_job",
        },
    }
