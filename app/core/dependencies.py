from __future__ import annotations

from fastapi import Header, Request
from redis.asyncio import Redis

from app.core.progression.services import ProgressionEngine
from app.core.security import decode_token
from app.response.response import APIError
from app.utils.redis_client import get_redis


def get_progression_engine(request: Request) -> ProgressionEngine:
    return request.app.state.progression_engine


def get_redis_client() -> Redis:
    return get_redis()


def get_current_user_key(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> str:
    """User key (the token subject, usually the account email)."""
    if not authorization:
        raise APIError(
            code="AUTH_NOT_AUTHENTICATED",
            http_code=401,
            message="Authorization header is required",
        )

    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise APIError(
            code="AUTH_INVALID_AUTH_HEADER",
            http_code=401,
            message="Malformed Authorization header",
        )

    if scheme.lower() != "bearer":
        raise APIError(
            code="AUTH_INVALID_AUTH_SCHEME",
            http_code=401,
            message="Bearer authorization scheme expected",
        )

    try:
        payload = decode_token(token)
    except Exception:
        raise APIError(
            code="AUTH_INVALID_TOKEN",
            http_code=401,
            message="Invalid or expired access token",
        )

    if payload.get("type") != "access":
        raise APIError(
            code="AUTH_INVALID_TOKEN_TYPE",
            http_code=401,
            message="Wrong token type",
        )

    user_key = payload.get("sub")
    if not isinstance(user_key, str) or not user_key.strip():
        raise APIError(
            code="AUTH_INVALID_TOKEN_PAYLOAD",
            http_code=401,
            message="Token subject is missing",
        )

    return user_key.strip()


__all__ = ["get_progression_engine", "get_redis_client", "get_current_user_key"]
