"""Snapshot storage for resumable workflows."""

from __future__ import annotations

import os
from typing import Optional

from ..config import TradeflowConfig, load_config
from .base import SnapshotStore
from .inmemory import InMemorySnapshotStore
from .sqlite import SQLiteSnapshotStore


def get_snapshot_store(
    backend: Optional[str] = None, config: Optional[TradeflowConfig] = None
) -> SnapshotStore:
    """Factory function to get the configured snapshot store."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("TRADEFLOW_SNAPSHOT_BACKEND")
        or config.snapshots.backend
    ).lower()

    if backend == "inmemory":
        return InMemorySnapshotStore()
    elif backend == "sqlite":
        return SQLiteSnapshotStore(config.snapshots.sqlite_path)
    elif backend == "redis":
        from .redis import RedisSnapshotStore

        redis_conf = config.snapshots.redis
        return RedisSnapshotStore(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
        )
    else:
        raise ValueError(f"Unsupported snapshot backend: {backend}")


__all__ = [
    "SnapshotStore",
    "InMemorySnapshotStore",
    "SQLiteSnapshotStore",
    "get_snapshot_store",
]
