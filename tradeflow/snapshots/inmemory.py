"""In-memory implementation of the snapshot store."""

from __future__ import annotations

from typing import Dict, Optional

from .base import SnapshotStore


class InMemorySnapshotStore(SnapshotStore):
    """Keep snapshots in local memory.

    Useful for tests or single-process runs. Data is not persisted across
    process restarts.
    """

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)
