from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger

from app.core.config import settings
from app.core.progression.api.v1.routes_progression import (
    router as progression_router,
)
from app.core.progression.config import load_progression_config
from app.core.progression.notifications import build_notification_sink
from app.core.progression.services import ProgressionEngine
from app.core.progression.storage import RedisKeyValueStore
from app.response import StandardResponse, make_error_response
from app.response.response import APIError
from app.utils.redis_client import close_redis, get_redis
from pokehunt_bg_worker.celery_app import celery_app


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config = load_progression_config(settings.progression_config_path)
    app.state.progression_engine = ProgressionEngine(
        RedisKeyValueStore(get_redis()),
        config,
        build_notification_sink(settings.notification_backend),
        key_prefix=settings.progress_key_prefix,
    )
    logger.info(
        "Progression engine ready (max level {}, {} badges, notices via {})",
        config.level_table.max_level,
        len(config.badges),
        settings.notification_backend,
    )
    try:
        yield
    finally:
        await close_redis()


app = FastAPI(lifespan=lifespan)


@app.exception_handler(APIError)
async def api_error_handler(
    request: Request,
    exc: APIError,
) -> JSONResponse:
    response: StandardResponse = make_error_response(
        code=exc.code,
        http_code=exc.http_code,
        message=exc.message,
        details=exc.details,
    )
    return JSONResponse(
        status_code=exc.http_code,
        content=jsonable_encoder(response),
    )


app.title = "PokeHunt Progression API"
app.version = "1.0.0"


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root() -> str:
    redis_ok = False
    try:
        await get_redis().ping()
        redis_ok = True
    except Exception:
        redis_ok = False

    worker_ok = False
    try:
        replies = celery_app.control.ping(timeout=0.5)
        worker_ok = bool(replies)
    except Exception:
        worker_ok = False

    def row(label: str, ok: bool) -> str:
        color = "#10B981" if ok else "#EF4444"
        text = "Online" if ok else "Offline"
        return f"""
            <div class="info-row">
                <span>{label}</span>
                <span style="color:{color}; font-weight:600;">{text}</span>
            </div>
        """

    status_rows = row("API:", True) + row("Redis:", redis_ok) + row(
        "Notice worker:", worker_ok
    )

    html = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8" />
        <title>PokeHunt Progression API - Status</title>
        <style>
            body {
                font-family: Inter, system-ui, sans-serif;
                background: #0F0F13;
                color: #E5E5E5;
                display: flex;
                align-items: center;
                justify-content: center;
                min-height: 100vh;
                margin: 0;
            }
            .container {
                background: #18181B;
                padding: 40px;
                border-radius: 16px;
                width: 100%;
                max-width: 420px;
            }
            .info-row {
                display: flex;
                justify-content: space-between;
                margin-bottom: 8px;
                font-size: 14px;
            }
            a { color: #EF5350; }
        </style>
    </head>
    <body>
        <div class="container">
            <h1>PokeHunt Progression</h1>
__STATUS_ROWS__
            <p><a href="/docs">Swagger UI</a> &middot; <a href="/redoc">ReDoc</a></p>
        </div>
    </body>
    </html>
    """
    return html.replace("__STATUS_ROWS__", status_rows)


app.include_router(progression_router, prefix="/api/v1")


__all__ = ["app"]
