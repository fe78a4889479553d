"""Key/value abstraction for resumability snapshots."""

from __future__ import annotations

from typing import Optional, Protocol


class SnapshotStore(Protocol):
    """Protocol for snapshot storage backends."""

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or ``None``."""

    async def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under ``key``."""

    async def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
