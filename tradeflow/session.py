"""Wiring helpers that build a controller from configuration."""

from __future__ import annotations

from typing import Optional

from .backends import MarketplaceBackend, get_backend
from .config import TradeflowConfig, load_config
from .controller import WorkflowController
from .pipeline import SubmissionPipeline
from .snapshots import SnapshotStore, get_snapshot_store
from .state import WorkflowStateStore, snapshot_key
from .workflows import get_definition


def create_controller(
    workflow: str,
    session: str,
    identity_token: Optional[str] = None,
    config: Optional[TradeflowConfig] = None,
    store: Optional[SnapshotStore] = None,
    backend: Optional[MarketplaceBackend] = None,
    min_reachable_step: Optional[int] = None,
) -> WorkflowController:
    """Build a controller for ``workflow`` scoped to ``session``.

    Collaborators not passed explicitly come from configuration. The pricing
    policy starts from configuration and can be refreshed from the backend.
    """
    config = config or load_config()
    definition = get_definition(workflow)
    store = store or get_snapshot_store(config=config)
    backend = backend or get_backend(config=config)
    state_store = WorkflowStateStore(
        store,
        snapshot_key(workflow, session, config.snapshots.namespace),
        ephemeral_fields=definition.ephemeral_fields,
    )
    return WorkflowController(
        definition,
        state_store,
        SubmissionPipeline(backend),
        identity_token=identity_token,
        pricing_policy=config.pricing.model_copy(deep=True),
        min_reachable_step=min_reachable_step,
    )
