from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends
from redis.asyncio import Redis

from app.core.dependencies import (
    get_current_user_key,
    get_progression_engine,
    get_redis_client,
)
from app.core.progression.inbox import drain_notices
from app.core.progression.schemas import (
    AwardRequest,
    BadgePublic,
    DailyChallengeRequest,
    LevelPublic,
    ProgressProfilePublic,
)
from app.core.progression.services import ProgressionEngine
from app.response import StandardResponse, make_success_response
from app.response.response import APIError


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
router = APIRouter(prefix="/progression", tags=["progression"])


@router.get(
    "/me",
    response_model=StandardResponse,
    summary="Get progression profile",
)
async def progression_profile_view(
    user_key: str = Depends(get_current_user_key),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    progress = await engine.load_progress(user_key)
    payload = engine.build_profile_payload(progress)
    result = ProgressProfilePublic.model_validate(payload).model_dump(mode="json")
    return make_success_response(result=result)


@router.post(
    "/awards",
    response_model=StandardResponse,
    summary="Award XP for an event and check badges",
)
async def progression_award_view(
    payload: AwardRequest,
    user_key: str = Depends(get_current_user_key),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    outcome = await engine.award_xp_and_check_badges(
        user_key,
        payload.kind,
        payload.pokemon_id,
    )
    result = outcome.model_dump(mode="json", exclude={"notices"})
    result["profile"] = ProgressProfilePublic.model_validate(
        engine.build_profile_payload(outcome.progress)
    ).model_dump(mode="json")
    result["messages"] = [notice.message for notice in outcome.notices]
    return make_success_response(result=result)


@router.get(
    "/badges",
    response_model=StandardResponse,
    summary="List badges with obtained flag",
)
async def progression_badges_view(
    user_key: str = Depends(get_current_user_key),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    progress = await engine.load_progress(user_key)
    result: List[dict] = [
        BadgePublic.model_validate(item).model_dump(mode="json")
        for item in engine.list_badges(progress)
    ]
    return make_success_response(result=result)


@router.get(
    "/levels",
    response_model=StandardResponse,
    summary="Level table",
)
async def progression_levels_view(
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    result: List[dict] = [
        LevelPublic.model_validate(item).model_dump(mode="json")
        for item in engine.list_levels()
    ]
    return make_success_response(result=result)


@router.post(
    "/daily-challenge",
    response_model=StandardResponse,
    summary="Start today's daily challenge",
)
async def progression_daily_challenge_view(
    payload: DailyChallengeRequest,
    user_key: str = Depends(get_current_user_key),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    try:
        progress = await engine.assign_daily_challenge(
            user_key,
            payload.pokemon_type,
            payload.target_count,
        )
    except ValueError as exc:
        raise APIError(
            code="PROGRESSION_INVALID_TARGET",
            http_code=400,
            message=str(exc),
        )
    payload_out = engine.build_profile_payload(progress)
    result = ProgressProfilePublic.model_validate(payload_out).model_dump(mode="json")
    return make_success_response(result=result)


@router.get(
    "/notices",
    response_model=StandardResponse,
    summary="Drain pending level-up and badge notices",
)
async def progression_notices_view(
    user_key: str = Depends(get_current_user_key),
    redis: Redis = Depends(get_redis_client),
) -> StandardResponse:
    try:
        notices = await drain_notices(redis, user_key)
        logger.info("notices drained (user=%s, count=%s)", user_key, len(notices))
    except Exception as exc:
        logger.warning("notices drain error: %r", exc)
        notices = []
    return make_success_response(result=notices)


@router.delete(
    "/me",
    response_model=StandardResponse,
    summary="Reset progression for the current user",
)
async def progression_reset_view(
    user_key: str = Depends(get_current_user_key),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> StandardResponse:
    success = await engine.reset_progress(user_key)
    return make_success_response(result={"success": success})


__all__ = ["router"]
