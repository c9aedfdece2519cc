from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Tuple


class LevelTableError(ValueError):
    pass


# Cumulative XP required to have reached each level.
LEVEL_XP_REQUIREMENTS: Dict[int, int] = {
    1: 0,
    2: 100,
    3: 250,
    4: 500,
    5: 800,
    6: 1200,
    7: 1700,
    8: 2300,
    9: 3000,
    10: 4000,
}


@dataclass(frozen=True)
class LevelTable:
    """
    Ordered level -> cumulative XP threshold mapping.

    Levels are contiguous from 1, level 1 starts at 0 XP and the last
    level is the highest one a user can reach.
    """

    thresholds: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.thresholds:
            raise LevelTableError("Level table must define at least level 1.")
        if self.thresholds[0] != 0:
            raise LevelTableError("Level 1 threshold must be 0.")
        for lower, upper in zip(self.thresholds, self.thresholds[1:]):
            if upper < lower:
                raise LevelTableError(
                    "Level thresholds must be non-decreasing."
                )

    @classmethod
    def from_mapping(cls, requirements: Mapping[int, int]) -> "LevelTable":
        levels = sorted(int(level) for level in requirements)
        if levels != list(range(1, len(levels) + 1)):
            raise LevelTableError(
                "Levels must be contiguous and start at 1."
            )
        by_level = {int(level): int(xp) for level, xp in requirements.items()}
        return cls(thresholds=tuple(by_level[level] for level in levels))

    @property
    def max_level(self) -> int:
        return len(self.thresholds)

    def threshold(self, level: int) -> int:
        clamped = max(1, min(level, self.max_level))
        return self.thresholds[clamped - 1]

    def items(self) -> Iterator[Tuple[int, int]]:
        for index, xp in enumerate(self.thresholds):
            yield index + 1, xp

    def as_dict(self) -> Dict[int, int]:
        return dict(self.items())


DEFAULT_LEVEL_TABLE = LevelTable.from_mapping(LEVEL_XP_REQUIREMENTS)


def level_from_xp(total_xp: int, table: LevelTable = DEFAULT_LEVEL_TABLE) -> int:
    if total_xp < 0:
        raise ValueError("total_xp must be non-negative")
    # Reaching a threshold exactly counts as reaching that level.
    return bisect_right(table.thresholds, total_xp)


def xp_threshold_for_next_level(
    current_level: int,
    table: LevelTable = DEFAULT_LEVEL_TABLE,
) -> int:
    """
    Cumulative XP needed for ``current_level + 1``.

    At the max level the max level's own threshold comes back, so callers
    must read "next == current threshold" as "nothing left to earn".
    """
    current_level = max(1, current_level)
    if current_level >= table.max_level:
        return table.threshold(table.max_level)
    return table.threshold(current_level + 1)


def is_max_level(level: int, table: LevelTable = DEFAULT_LEVEL_TABLE) -> bool:
    return level >= table.max_level


def xp_to_next_level(total_xp: int, table: LevelTable = DEFAULT_LEVEL_TABLE) -> int:
    current_level = level_from_xp(total_xp, table)
    if is_max_level(current_level, table):
        return 0
    return xp_threshold_for_next_level(current_level, table) - total_xp


def progress_percent(total_xp: int, table: LevelTable = DEFAULT_LEVEL_TABLE) -> int:
    current_level = level_from_xp(total_xp, table)
    if is_max_level(current_level, table):
        return 100
    min_xp = table.threshold(current_level)
    max_xp = xp_threshold_for_next_level(current_level, table)
    if max_xp == min_xp:
        return 100
    raw = (total_xp - min_xp) / (max_xp - min_xp) * 100
    percent = int(round(raw))
    return max(0, min(100, percent))


__all__ = [
    "LEVEL_XP_REQUIREMENTS",
    "DEFAULT_LEVEL_TABLE",
    "LevelTable",
    "LevelTableError",
    "level_from_xp",
    "xp_threshold_for_next_level",
    "is_max_level",
    "xp_to_next_level",
    "progress_percent",
]
