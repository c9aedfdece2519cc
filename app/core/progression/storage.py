from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

from loguru import logger
from redis.asyncio import Redis

from app.core.config import settings
from app.core.progression.schemas import UserProgress


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisKeyValueStore:
    """KeyValueStore on top of an async Redis client (decode_responses=True)."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)


def progress_key(user_key: str, prefix: str | None = None) -> str:
    return f"{prefix or settings.progress_key_prefix}:{user_key.strip()}"


class ProgressRepository:
    """
    JSON (de)serialization of progress records over a KeyValueStore.

    ``load`` returns the raw stored mapping or None; errors are not caught
    here, the engine decides how to degrade.
    """

    def __init__(self, store: KeyValueStore, prefix: str | None = None) -> None:
        self._store = store
        self._prefix = prefix

    def key_for(self, user_key: str) -> str:
        return progress_key(user_key, self._prefix)

    async def load(self, user_key: str) -> Optional[Dict[str, Any]]:
        raw = await self._store.get(self.key_for(user_key))
        if raw is None:
            return None
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Stored progress is not a JSON object")
        return data

    async def save(self, user_key: str, progress: UserProgress) -> None:
        payload = json.dumps(progress.to_storage(), ensure_ascii=False)
        await self._store.set(self.key_for(user_key), payload)
        logger.debug("Saved progress (key={})", self.key_for(user_key))

    async def delete(self, user_key: str) -> None:
        await self._store.delete(self.key_for(user_key))


__all__ = [
    "KeyValueStore",
    "RedisKeyValueStore",
    "ProgressRepository",
    "progress_key",
]
