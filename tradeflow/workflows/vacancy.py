"""Vacancy posting wizard for employers."""

from __future__ import annotations

from typing import Any, Dict

from ..constants import DURATION_DAYS
from ..contracts import Fields, StepSpec, ValidationResult, WorkflowDefinition
from .validators import (
    combine,
    coordinates,
    min_length,
    number_range,
    one_of,
    optional,
    require,
    to_int,
)

JOB_TYPES = ["full-time", "part-time", "remote", "contract", "freelance", "internship"]
EXPERIENCE_LEVELS = ["entry", "mid", "senior", "lead", "executive"]
SALARY_PERIODS = ["hourly", "daily", "yearly"]


def _experience_levels(fields: Fields) -> ValidationResult:
    levels = fields.get("experience_levels") or []
    if not levels:
        return ValidationResult.failure(
            "experience_levels", "Please select at least one experience level."
        )
    unknown = [level for level in levels if level not in EXPERIENCE_LEVELS]
    if unknown:
        return ValidationResult.failure(
            "experience_levels", f"Unknown experience level: {', '.join(unknown)}"
        )
    return ValidationResult.success()


def _or_none(values):
    return list(values) if values else None


def build_vacancy_record(fields: Fields) -> Dict[str, Any]:
    coords = fields.get("location_coords") or {}
    description = (fields.get("description") or "").strip()
    levels = fields.get("experience_levels") or []
    period = fields.get("salary_period") or "yearly"
    return {
        "company_id": fields.get("profile_id"),
        "homeowner_id": None,
        "title": (fields.get("title") or "").strip(),
        "location": fields.get("full_address", ""),
        "latitude": coords.get("lat"),
        "longitude": coords.get("lon"),
        "city": fields.get("city") or None,
        "country": fields.get("country") or None,
        "formatted_address": fields.get("full_address", ""),
        "work_location": "remote" if fields.get("job_type") == "remote" else "onsite",
        "description": description,
        "short_description": description[:200],
        "job_type": fields.get("job_type"),
        "experience_level": levels[0] if levels else None,
        "experience_levels": _or_none(levels),
        "is_tradespeople_job": False,
        "salary_min": to_int(fields.get("salary_min")),
        "salary_max": to_int(fields.get("salary_max")),
        "salary_period": period,
        "salary_frequency": f"per_{period}",
        "skills": _or_none(fields.get("skills")),
        "languages": _or_none(fields.get("languages")),
        "benefits": _or_none(fields.get("benefits")),
        "recruitment_timeline": fields.get("active_duration"),
        "is_active": True,
    }


VACANCY_POSTING = WorkflowDefinition(
    name="vacancy_posting",
    record_kind="job",
    table="jobs",
    steps=[
        StepSpec(
            id="duration",
            title="How long should the vacancy stay active?",
            fields=["active_duration"],
            validate=one_of(
                "active_duration",
                DURATION_DAYS,
                "Please select how long you want your vacancy to be active.",
            ),
        ),
        StepSpec(
            id="basics",
            title="Job basics",
            fields=["title", "description"],
            validate=combine(
                require("title", "Please enter a job title."),
                min_length("title", 5, "Job title must be at least 5 characters."),
                require("description", "Please enter a job description."),
                min_length(
                    "description",
                    50,
                    "Job description must be at least 50 characters to provide sufficient detail.",
                ),
            ),
        ),
        StepSpec(
            id="details",
            title="Job details",
            fields=["job_type", "experience_levels", "skills", "languages", "benefits"],
            validate=combine(
                one_of("job_type", JOB_TYPES, "Please select a job type."),
                _experience_levels,
            ),
        ),
        StepSpec(
            id="salary",
            title="Salary (optional)",
            fields=["salary_min", "salary_max", "salary_period"],
            validate=combine(
                number_range("salary_min", "salary_max", "Salary"),
                optional(
                    "salary_period",
                    one_of("salary_period", SALARY_PERIODS, "Please choose a salary period."),
                ),
            ),
        ),
        StepSpec(
            id="location",
            title="Where is the job?",
            fields=["full_address", "location_coords", "city", "country"],
            validate=coordinates(
                "location_coords",
                "Please select a location on the map. This is mandatory for job postings.",
            ),
        ),
    ],
    duration_field="active_duration",
    usage_kind="job",
    build_record=build_vacancy_record,
    completion_target=lambda fields: "/dashboard/company",
    success_title="Your vacancy has been posted successfully!",
)
