"""Registered workflow definitions."""

from __future__ import annotations

from typing import Dict

from ..contracts import WorkflowDefinition
from ..errors import DefinitionError
from .job_extension import JOB_EXTENSION
from .job_posting import JOB_POSTING, homeowner_launch
from .onboarding import ONBOARDING, preselected_launch
from .vacancy import VACANCY_POSTING

# Definitions keyed by name. Applications may register their own at import
# time; names must be unique.
REGISTRY: Dict[str, WorkflowDefinition] = {}


def register_workflow(definition: WorkflowDefinition) -> WorkflowDefinition:
    """Add ``definition`` to ``REGISTRY``."""
    if definition.name in REGISTRY:
        raise DefinitionError(f"Workflow {definition.name!r} is already registered")
    REGISTRY[definition.name] = definition
    return definition


def get_definition(name: str) -> WorkflowDefinition:
    try:
        return REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(REGISTRY)) or "none"
        raise KeyError(f"Unknown workflow {name!r} (known: {known})") from None


for _definition in (ONBOARDING, JOB_POSTING, VACANCY_POSTING, JOB_EXTENSION):
    register_workflow(_definition)


__all__ = [
    "REGISTRY",
    "register_workflow",
    "get_definition",
    "ONBOARDING",
    "JOB_POSTING",
    "VACANCY_POSTING",
    "JOB_EXTENSION",
    "homeowner_launch",
    "preselected_launch",
]
