from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from app.core.config import settings
from app.core.progression.inbox import push_notice
from app.utils.redis_client import get_sync_redis
from pokehunt_bg_worker.celery_app import celery_app


@celery_app.task(name="progression.deliver_notice")
def deliver_progression_notice(user_key: str, payload: Dict[str, Any]) -> None:
    logger.info(
        "Delivering progression notice",
        user_key=user_key,
        kind=payload.get("kind"),
    )
    try:
        push_notice(
            get_sync_redis(),
            user_key,
            payload,
            limit=settings.notice_inbox_limit,
        )
    except Exception as exc:
        logger.error("Failed to store progression notice", exc_info=exc)
        raise


__all__ = ["deliver_progression_notice"]
