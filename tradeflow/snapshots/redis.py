"""Redis implementation of the snapshot store."""

from __future__ import annotations

from typing import Any, Optional

import redis.asyncio as redis

from .base import SnapshotStore


class RedisSnapshotStore(SnapshotStore):
    """Snapshots shared across processes through Redis strings."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> Optional[str]:
        if not self._redis:
            await self.connect()
        return await self._redis.get(key)

    async def set(self, key: str, value: str) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.delete(key)
