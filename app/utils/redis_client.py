from __future__ import annotations

import socket
from typing import Optional

from redis import Redis
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import settings


_redis_client: Optional[AsyncRedis] = None
_sync_redis_client: Optional[Redis] = None


def get_redis() -> AsyncRedis:
    """
    Process-wide async client used by the API.

    Connections are opened lazily on the first command, so creating the
    client never touches the network.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = AsyncRedis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def _create_sync_redis_client() -> Redis:
    """
    Connects by REDIS_URL and falls back to localhost:6379 on DNS/connect
    errors, so the worker runs both inside docker-compose and on the host.
    """
    try:
        client = Redis.from_url(settings.redis_url, decode_responses=True)
        client.ping()
        return client
    except (RedisConnectionError, socket.gaierror):
        pass

    fallback_url = "redis://localhost:6379/0"
    client = Redis.from_url(fallback_url, decode_responses=True)
    client.ping()
    return client


def get_sync_redis() -> Redis:
    global _sync_redis_client
    if _sync_redis_client is None:
        _sync_redis_client = _create_sync_redis_client()
    return _sync_redis_client


__all__ = ["get_redis", "close_redis", "get_sync_redis"]
