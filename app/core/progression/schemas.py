from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class AwardEventKind(str, Enum):
    POKEMON_CAPTURE = "POKEMON_CAPTURE"
    DAILY_CHALLENGE_COMPLETE = "DAILY_CHALLENGE_COMPLETE"
    FIRST_DISCOVERY_POST = "FIRST_DISCOVERY_POST"


NoticeKind = Literal["level_up", "badge_unlocked"]


class DailyChallengeStatus(BaseModel):
    completed: bool = False
    last_completion_date: date | None = Field(
        default=None, alias="lastCompletionDate"
    )
    pokemon_type: str | None = Field(default=None, alias="pokemonType")
    target_count: int = Field(default=1, alias="targetCount", ge=1)

    model_config = ConfigDict(populate_by_name=True)


class ProgressStats(BaseModel):
    captures: int = Field(default=0, ge=0)
    captured_kanto_ids: List[int] = Field(
        default_factory=list, alias="capturedKantoIds"
    )
    daily_challenges_completed: int = Field(
        default=0, ge=0, alias="dailyChallengesCompleted"
    )
    discovery_posts: int = Field(default=0, ge=0, alias="discoveryPosts")

    model_config = ConfigDict(populate_by_name=True)


class UserProgress(BaseModel):
    """
    Per-user progression record, stored as JSON under ``progress:<userKey>``.

    ``level`` is always derived from ``xp``; ``badges`` only ever grows.
    """

    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    badges: List[str] = Field(default_factory=list)
    daily_challenge_status: DailyChallengeStatus = Field(
        default_factory=DailyChallengeStatus,
        alias="dailyChallengeStatus",
    )
    stats: ProgressStats = Field(default_factory=ProgressStats)

    model_config = ConfigDict(populate_by_name=True)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AwardEvent(BaseModel):
    user_key: str
    kind: str
    pokemon_id: int | None = None


class ProgressionNotice(BaseModel):
    user_key: str
    kind: NoticeKind
    message: str
    level: int | None = None
    badge_id: str | None = None


class AwardOutcome(BaseModel):
    progress: UserProgress
    xp_gained: int
    level_up: bool
    previous_level: int
    unlocked_badges: List[str]
    notices: List[ProgressionNotice]
    persisted: bool


class AwardRequest(BaseModel):
    kind: str = Field(..., min_length=1, max_length=64)
    pokemon_id: int | None = Field(default=None, ge=1, alias="pokemonId")

    model_config = ConfigDict(populate_by_name=True)


class DailyChallengeRequest(BaseModel):
    pokemon_type: str = Field(..., min_length=1, max_length=32, alias="pokemonType")
    target_count: int = Field(default=1, ge=1, le=100, alias="targetCount")

    model_config = ConfigDict(populate_by_name=True)


class DailyChallengePublic(BaseModel):
    completed: bool
    last_completion_date: date | None
    pokemon_type: str | None
    target_count: int


class ProgressProfilePublic(BaseModel):
    level: int
    xp: int
    xp_to_next_level: int
    next_level_xp: int
    progress_percent: int
    is_max_level: bool
    badges: List[str]
    daily_challenge: DailyChallengePublic


class BadgePublic(BaseModel):
    id: str
    title: str
    description: str
    target: int
    current: int
    progress_percent: int
    is_obtained: bool


class LevelPublic(BaseModel):
    level: int
    xp_required: int


__all__ = [
    "AwardEventKind",
    "NoticeKind",
    "DailyChallengeStatus",
    "ProgressStats",
    "UserProgress",
    "AwardEvent",
    "ProgressionNotice",
    "AwardOutcome",
    "AwardRequest",
    "DailyChallengeRequest",
    "DailyChallengePublic",
    "ProgressProfilePublic",
    "BadgePublic",
    "LevelPublic",
]
