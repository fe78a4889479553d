"""Tradeflow: resumable stepped workflows for marketplace wizards."""

from .backends import MarketplaceBackend, get_backend
from .calculators import compute_expiration, compute_price, duration_days
from .config import PricingPolicy, load_config
from .contracts import (
    AssetUpload,
    SkipRule,
    StepSpec,
    ValidationResult,
    WorkflowDefinition,
    WorkflowState,
)
from .controller import TransitionOutcome, WorkflowController, WorkflowPhase
from .gate import DenialReason, EligibilityGate
from .pipeline import SubmissionPipeline
from .snapshots import get_snapshot_store
from .state import WorkflowStateStore, snapshot_key
from .workflows import REGISTRY, get_definition

__version__ = "0.1.0"
__all__ = [
    "AssetUpload",
    "DenialReason",
    "EligibilityGate",
    "MarketplaceBackend",
    "PricingPolicy",
    "REGISTRY",
    "SkipRule",
    "StepSpec",
    "SubmissionPipeline",
    "TransitionOutcome",
    "ValidationResult",
    "WorkflowController",
    "WorkflowDefinition",
    "WorkflowPhase",
    "WorkflowState",
    "WorkflowStateStore",
    "compute_expiration",
    "compute_price",
    "duration_days",
    "get_backend",
    "get_definition",
    "get_snapshot_store",
    "load_config",
    "snapshot_key",
]
