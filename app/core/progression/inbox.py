from __future__ import annotations

import json
from typing import Any, Dict, List

from loguru import logger
from redis import Redis
from redis.asyncio import Redis as AsyncRedis


def notice_inbox_key(user_key: str) -> str:
    return f"notices:{user_key.strip()}"


def push_notice(
    redis: Redis,
    user_key: str,
    payload: Dict[str, Any],
    limit: int,
) -> None:
    """Append a notice, keeping only the newest ``limit`` entries."""
    key = notice_inbox_key(user_key)
    pipe = redis.pipeline()
    pipe.rpush(key, json.dumps(payload, ensure_ascii=False))
    pipe.ltrim(key, -limit, -1)
    pipe.execute()


async def drain_notices(redis: AsyncRedis, user_key: str) -> List[Dict[str, Any]]:
    key = notice_inbox_key(user_key)
    async with redis.pipeline(transaction=True) as pipe:
        pipe.lrange(key, 0, -1)
        pipe.delete(key)
        raw_items, _deleted = await pipe.execute()

    notices: List[Dict[str, Any]] = []
    for raw in raw_items:
        try:
            notices.append(json.loads(raw))
        except (TypeError, ValueError):
            logger.warning("Dropping unreadable notice for {}: {!r}", user_key, raw)
            continue
    return notices


__all__ = ["notice_inbox_key", "push_notice", "drain_notices"]
