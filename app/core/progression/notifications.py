from __future__ import annotations

import asyncio
from typing import Protocol

from loguru import logger

from app.core.progression.schemas import ProgressionNotice
from pokehunt_bg_worker.notices_worker import deliver_progression_notice


class NotificationSink(Protocol):
    async def notify(self, notice: ProgressionNotice) -> None: ...


class LoggingNotificationSink:
    async def notify(self, notice: ProgressionNotice) -> None:
        logger.info(
            "Progression notice for {}: {}",
            notice.user_key,
            notice.message,
        )


class CeleryNotificationSink:
    """
    Hands notices to the background worker, which stores them in the
    user's notice inbox until the client drains it.
    """

    async def notify(self, notice: ProgressionNotice) -> None:
        logger.info(
            "Scheduling progression notice via Celery",
            user_key=notice.user_key,
            kind=notice.kind,
        )
        await asyncio.to_thread(
            deliver_progression_notice.delay,
            user_key=notice.user_key,
            payload=notice.model_dump(mode="json"),
        )


def build_notification_sink(backend: str) -> NotificationSink:
    if backend == "log":
        return LoggingNotificationSink()
    return CeleryNotificationSink()


__all__ = [
    "NotificationSink",
    "LoggingNotificationSink",
    "CeleryNotificationSink",
    "build_notification_sink",
]
