from __future__ import annotations

from celery import Celery

from app.core.config import settings


# Celery connects to the broker lazily, on the first publish or when the
# worker starts, so importing this module stays side-effect free.
celery_app = Celery(
    "pokehunt_bg_worker",
    broker=settings.celery_broker_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    task_ignore_result=True,
)

celery_app.autodiscover_tasks(
    packages=["pokehunt_bg_worker"],
)


__all__ = ["celery_app"]
