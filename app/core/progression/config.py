from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, Field, NonNegativeInt, ValidationError

from app.core.progression.badges import DEFAULT_BADGES, BadgeDefinition
from app.core.progression.levels import (
    DEFAULT_LEVEL_TABLE,
    LevelTable,
    LevelTableError,
)
from app.core.progression.schemas import AwardEventKind


XP_AWARDS: Dict[str, int] = {
    AwardEventKind.POKEMON_CAPTURE.value: 50,
    AwardEventKind.DAILY_CHALLENGE_COMPLETE.value: 150,
    AwardEventKind.FIRST_DISCOVERY_POST.value: 200,
}

KANTO_POKEDEX_RANGE: Tuple[int, int] = (1, 151)


class ProgressionConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ProgressionConfig:
    """
    Static level/XP/badge configuration.

    Built once at startup and handed to the engine; never mutated.
    """

    level_table: LevelTable = DEFAULT_LEVEL_TABLE
    xp_awards: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(XP_AWARDS))
    )
    badges: Tuple[BadgeDefinition, ...] = DEFAULT_BADGES
    kanto_range: Tuple[int, int] = KANTO_POKEDEX_RANGE

    def __post_init__(self) -> None:
        ids = [badge.id for badge in self.badges]
        if len(ids) != len(set(ids)):
            raise ProgressionConfigError("Badge ids must be unique.")
        negative = sorted(k for k, v in self.xp_awards.items() if v < 0)
        if negative:
            raise ProgressionConfigError(
                f"XP awards must not be negative: {', '.join(negative)}"
            )
        if not isinstance(self.xp_awards, MappingProxyType):
            object.__setattr__(
                self, "xp_awards", MappingProxyType(dict(self.xp_awards))
            )

    def xp_for(self, kind: str) -> int:
        return int(self.xp_awards.get(kind, 0))

    def badge(self, badge_id: str) -> Optional[BadgeDefinition]:
        for item in self.badges:
            if item.id == badge_id:
                return item
        return None

    def is_kanto(self, pokemon_id: int | None) -> bool:
        if pokemon_id is None:
            return False
        first, last = self.kanto_range
        return first <= pokemon_id <= last


class _BadgeIn(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    target: int
    counter: str
    description: str = ""


class _ProgressionConfigIn(BaseModel):
    levels: Dict[int, int]
    xp_awards: Dict[str, NonNegativeInt] = Field(
        default_factory=dict, alias="xpAwards"
    )
    badges: List[_BadgeIn] = Field(default_factory=list)
    kanto_range: Tuple[int, int] = Field(
        default=KANTO_POKEDEX_RANGE, alias="kantoRange"
    )


def build_progression_config(data: Mapping[str, object]) -> ProgressionConfig:
    try:
        parsed = _ProgressionConfigIn.model_validate(data)
        table = LevelTable.from_mapping(parsed.levels)
        badges = tuple(
            BadgeDefinition(
                id=item.id,
                title=item.title,
                target=item.target,
                counter=item.counter,
                description=item.description,
            )
            for item in parsed.badges
        )
    except (ValidationError, LevelTableError, ValueError) as exc:
        raise ProgressionConfigError(str(exc)) from exc

    return ProgressionConfig(
        level_table=table,
        xp_awards=parsed.xp_awards,
        badges=badges,
        kanto_range=parsed.kanto_range,
    )


def load_progression_config(path: str | None = None) -> ProgressionConfig:
    if not path:
        return ProgressionConfig()

    try:
        with open(Path(path), "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ProgressionConfigError(
            f"Cannot read progression config {path}: {exc}"
        ) from exc

    config = build_progression_config(data)
    logger.info(
        "Loaded progression config from {} ({} levels, {} badges)",
        path,
        config.level_table.max_level,
        len(config.badges),
    )
    return config


__all__ = [
    "XP_AWARDS",
    "KANTO_POKEDEX_RANGE",
    "ProgressionConfig",
    "ProgressionConfigError",
    "build_progression_config",
    "load_progression_config",
]
