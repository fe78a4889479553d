"""Resumability snapshots for workflow state."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from .constants import DEFAULT_SNAPSHOT_NAMESPACE
from .contracts import WorkflowState
from .snapshots import SnapshotStore

logger = logging.getLogger(__name__)


def snapshot_key(
    workflow: str, session: str, namespace: str = DEFAULT_SNAPSHOT_NAMESPACE
) -> str:
    """Build the workflow-scoped key a snapshot is stored under."""
    return f"{namespace}:{workflow}:{session}"


class WorkflowStateStore:
    """Reads and writes the snapshot of a single workflow instance.

    Every write replaces the stored value wholesale; there is only ever one
    writer per key.
    """

    def __init__(
        self,
        store: SnapshotStore,
        key: str,
        ephemeral_fields: Iterable[str] = (),
    ) -> None:
        self._store = store
        self.key = key
        self._ephemeral = frozenset(ephemeral_fields)

    async def load(self) -> Optional[WorkflowState]:
        """Return the persisted state, or ``None`` when absent or unreadable."""
        raw = await self._store.get(self.key)
        if raw is None:
            return None
        try:
            return WorkflowState.from_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable snapshot {self.key}: {e}")
            return None

    async def save(self, state: WorkflowState) -> None:
        if self._ephemeral:
            fields = {
                name: value
                for name, value in state.fields.items()
                if name not in self._ephemeral
            }
            state = state.model_copy(update={"fields": fields})
        await self._store.set(self.key, state.to_json())
        logger.debug(f"Saved snapshot {self.key} at step {state.step_index}")

    async def clear(self) -> None:
        await self._store.delete(self.key)
        logger.debug(f"Cleared snapshot {self.key}")
