"""Signup onboarding flow: action, account type, role, credentials."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..contracts import Fields, StepSpec, ValidationResult, WorkflowDefinition
from .validators import combine, email, min_length, one_of, require

ROLES_BY_USER_TYPE = {
    "individual": ["homeowner", "jobseeker"],
    "business": ["employer", "contractor"],
}

ROLE_ONBOARDING_PATHS = {
    "homeowner": "/onboarding/homeowner",
    "contractor": "/onboarding/contractor",
}


def _role_matches_type(fields: Fields) -> ValidationResult:
    allowed = ROLES_BY_USER_TYPE.get(fields.get("user_type"), [])
    return one_of("role", allowed, "Please choose one of the listed options.")(fields)


def _passwords_match(fields: Fields) -> ValidationResult:
    if fields.get("password") != fields.get("confirm_password"):
        return ValidationResult.failure("confirm_password", "Passwords do not match")
    return ValidationResult.success()


def build_account_record(fields: Fields) -> Dict[str, Any]:
    return {
        "email": (fields.get("email") or "").strip().lower(),
        "user_type": fields.get("role"),
        "role": fields.get("role"),
        "action": fields.get("action"),
        "onboarding_completed": False,
    }


def onboarding_target(fields: Fields) -> str:
    return ROLE_ONBOARDING_PATHS.get(fields.get("role"), "/onboarding")


ONBOARDING = WorkflowDefinition(
    name="onboarding",
    record_kind="account",
    table="signups",
    steps=[
        StepSpec(
            id="action",
            title="What brings you here?",
            fields=["action"],
            validate=one_of("action", ["provider", "hiring"], "Please choose an option."),
        ),
        StepSpec(
            id="user_type",
            title="Individual or business?",
            fields=["user_type"],
            validate=one_of("user_type", ROLES_BY_USER_TYPE, "Please choose an option."),
        ),
        StepSpec(
            id="role",
            title="What best describes you?",
            fields=["role"],
            validate=_role_matches_type,
        ),
        StepSpec(
            id="signup",
            title="Create your account",
            fields=["email", "password", "confirm_password"],
            validate=combine(
                require("email", "All fields are required"),
                require("password", "All fields are required"),
                require("confirm_password", "All fields are required"),
                min_length("password", 6, "Password must be at least 6 characters"),
                _passwords_match,
                email("email"),
            ),
        ),
    ],
    requires_eligibility=False,
    ephemeral_fields=["password", "confirm_password"],
    build_record=build_account_record,
    completion_target=onboarding_target,
    success_title="Account created",
)


def preselected_launch(
    action: Optional[str] = None,
    user_type: Optional[str] = None,
    role: Optional[str] = None,
) -> Dict[str, Any]:
    """Launch arguments when choices were made before the flow opened.

    A pre-selected role and account type go straight to signup; a chosen
    action alone skips the first question.
    """
    if role and user_type:
        preset = {"user_type": user_type, "role": role}
        if action:
            preset["action"] = action
        return {"start_at": "signup", "preset_fields": preset}
    if action:
        return {"start_at": "user_type", "preset_fields": {"action": action}}
    return {}
