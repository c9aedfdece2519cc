from __future__ import annotations

from pokehunt_bg_worker.celery_app import celery_app
from pokehunt_bg_worker import notices_worker  # noqa: F401  registers tasks


def main() -> None:
    # Celery's prefork pool is unreliable on Windows, so the solo pool is used.
    argv = ["worker", "--loglevel=info", "-P", "solo"]
    celery_app.worker_main(argv)


if __name__ == "__main__":
    main()
