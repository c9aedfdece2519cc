from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

from app.core.progression.schemas import ProgressStats


# Counters a badge can track, read from the record's stats.
BADGE_COUNTERS: Dict[str, Callable[[ProgressStats], int]] = {
    "captures": lambda stats: stats.captures,
    "kanto_captures": lambda stats: len(set(stats.captured_kanto_ids)),
    "daily_challenges_completed": lambda stats: stats.daily_challenges_completed,
    "discovery_posts": lambda stats: stats.discovery_posts,
}


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    title: str
    target: int
    counter: str
    description: str = ""

    def __post_init__(self) -> None:
        if self.counter not in BADGE_COUNTERS:
            raise ValueError(f"Unknown badge counter: {self.counter}")
        if self.target < 1:
            raise ValueError("Badge target must be at least 1")

    def current_value(self, stats: ProgressStats) -> int:
        return BADGE_COUNTERS[self.counter](stats)

    def is_satisfied(self, stats: ProgressStats) -> bool:
        return self.current_value(stats) >= self.target

    def progress_percent(self, stats: ProgressStats) -> int:
        raw = self.current_value(stats) / self.target * 100
        return max(0, min(100, int(round(raw))))


DEFAULT_BADGES: Tuple[BadgeDefinition, ...] = (
    BadgeDefinition(
        id="KANTO",
        title="Kanto Explorer",
        target=5,
        counter="kanto_captures",
        description="Catch 5 different Kanto Pokémon (#1-#151).",
    ),
    BadgeDefinition(
        id="SOCIALITE",
        title="Social Trainer",
        target=1,
        counter="discovery_posts",
        description="Post your first discovery to the global feed.",
    ),
    BadgeDefinition(
        id="DAILY_VETERAN",
        title="Daily Veteran",
        target=7,
        counter="daily_challenges_completed",
        description="Complete 7 daily challenges.",
    ),
)


def newly_unlocked(
    badges: Iterable[BadgeDefinition],
    stats: ProgressStats,
    owned: Iterable[str],
) -> List[BadgeDefinition]:
    """Badges whose condition holds now and that the user does not own yet."""
    owned_ids = set(owned)
    return [
        badge
        for badge in badges
        if badge.id not in owned_ids and badge.is_satisfied(stats)
    ]


__all__ = [
    "BADGE_COUNTERS",
    "BadgeDefinition",
    "DEFAULT_BADGES",
    "newly_unlocked",
]
