from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from app.core.progression.badges import newly_unlocked
from app.core.progression.config import ProgressionConfig
from app.core.progression.levels import (
    DEFAULT_LEVEL_TABLE,
    LevelTable,
    is_max_level,
    level_from_xp,
    progress_percent,
    xp_threshold_for_next_level,
    xp_to_next_level,
)
from app.core.progression.notifications import NotificationSink
from app.core.progression.schemas import (
    AwardEvent,
    AwardEventKind,
    AwardOutcome,
    DailyChallengeStatus,
    ProgressionNotice,
    UserProgress,
)
from app.core.progression.storage import KeyValueStore, ProgressRepository


# Sub-records merged field by field so older records pick up new keys.
_NESTED_FIELDS = ("dailyChallengeStatus", "stats")


def default_progress() -> UserProgress:
    return UserProgress()


def with_defaults(
    stored: Optional[Mapping[str, Any]],
    table: LevelTable = DEFAULT_LEVEL_TABLE,
) -> UserProgress:
    """
    Lay a stored record over the zero-state default.

    Stored values win wherever both exist. ``level`` is re-derived from
    ``xp`` and duplicate badge ids are dropped, so the result always holds
    the record invariants. Raises ``ValidationError`` for unusable values.
    """
    merged: Dict[str, Any] = default_progress().to_storage()
    for key, value in (stored or {}).items():
        if key in _NESTED_FIELDS and value is None:
            continue
        if key in _NESTED_FIELDS and isinstance(value, Mapping):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value

    progress = UserProgress.model_validate(merged)
    progress.badges = list(dict.fromkeys(progress.badges))
    progress.stats.captured_kanto_ids = list(
        dict.fromkeys(progress.stats.captured_kanto_ids)
    )
    progress.level = level_from_xp(progress.xp, table)
    return progress


def refresh_daily_challenge(
    status: DailyChallengeStatus,
    today: date,
) -> DailyChallengeStatus:
    """A cycle completed on an earlier day is open again today."""
    if status.completed and status.last_completion_date != today:
        return status.model_copy(update={"completed": False})
    return status


def apply_award(
    progress: UserProgress,
    event: AwardEvent,
    config: ProgressionConfig,
    today: date,
) -> Tuple[UserProgress, List[ProgressionNotice]]:
    """
    Pure award step: returns the updated copy of ``progress`` and the
    notices the award produced. The input record is left untouched.
    """
    updated = progress.model_copy(deep=True)
    stats = updated.stats

    xp_gained = config.xp_for(event.kind)

    if event.kind == AwardEventKind.POKEMON_CAPTURE.value:
        stats.captures += 1
        if (
            config.is_kanto(event.pokemon_id)
            and event.pokemon_id not in stats.captured_kanto_ids
        ):
            stats.captured_kanto_ids.append(event.pokemon_id)
    elif event.kind == AwardEventKind.DAILY_CHALLENGE_COMPLETE.value:
        status = updated.daily_challenge_status
        already_done_today = (
            status.completed and status.last_completion_date == today
        )
        if not already_done_today:
            stats.daily_challenges_completed += 1
        status.completed = True
        status.last_completion_date = today
    elif event.kind == AwardEventKind.FIRST_DISCOVERY_POST.value:
        # One-time bonus: later posts are counted but earn nothing.
        if stats.discovery_posts > 0:
            xp_gained = 0
        stats.discovery_posts += 1

    updated.xp += xp_gained

    notices: List[ProgressionNotice] = []

    new_level = level_from_xp(updated.xp, config.level_table)
    if new_level > progress.level:
        notices.append(
            ProgressionNotice(
                user_key=event.user_key,
                kind="level_up",
                message=f"Congratulations! You leveled up to Level {new_level}!",
                level=new_level,
            )
        )
    updated.level = new_level

    for badge in newly_unlocked(config.badges, stats, updated.badges):
        updated.badges.append(badge.id)
        notices.append(
            ProgressionNotice(
                user_key=event.user_key,
                kind="badge_unlocked",
                message=f"Badge Unlocked: {badge.title}!",
                badge_id=badge.id,
            )
        )

    return updated, notices


class ProgressionEngine:
    """
    Read-modify-write shell around the pure progression functions.

    One ``get`` and at most one ``set`` per award. Concurrent awards for
    the same user are last-write-wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: ProgressionConfig | None = None,
        sink: NotificationSink | None = None,
        *,
        key_prefix: str | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or ProgressionConfig()
        self._repository = ProgressRepository(store, prefix=key_prefix)
        self._sink = sink
        self._clock = clock

    async def read_progress(self, user_key: str) -> Optional[Dict[str, Any]]:
        return await self._repository.load(user_key)

    async def load_progress(self, user_key: str) -> UserProgress:
        if not user_key or not user_key.strip():
            return default_progress()

        try:
            stored = await self.read_progress(user_key)
        except Exception as exc:
            logger.warning(
                "Failed to read progress for {}: {!r}", user_key, exc
            )
            return default_progress()

        if stored is None:
            return default_progress()

        try:
            return with_defaults(stored, self.config.level_table)
        except ValidationError as exc:
            logger.warning(
                "Malformed progress record for {}: {!r}", user_key, exc
            )
            return default_progress()

    async def save_progress(self, user_key: str, progress: UserProgress) -> bool:
        try:
            await self._repository.save(user_key, progress)
        except Exception as exc:
            logger.error(
                "Failed to save progress for {}: {!r}", user_key, exc
            )
            return False
        return True

    async def award_xp_and_check_badges(
        self,
        user_key: str,
        kind: AwardEventKind | str,
        pokemon_id: int | None = None,
        *,
        today: date | None = None,
    ) -> AwardOutcome:
        if isinstance(kind, AwardEventKind):
            kind = kind.value
        if not user_key or not user_key.strip():
            logger.warning("Ignoring {} award for a blank user key", kind)
            progress = default_progress()
            return AwardOutcome(
                progress=progress,
                xp_gained=0,
                level_up=False,
                previous_level=progress.level,
                unlocked_badges=[],
                notices=[],
                persisted=False,
            )

        event = AwardEvent(user_key=user_key, kind=kind, pokemon_id=pokemon_id)
        current = await self.load_progress(user_key)
        updated, notices = apply_award(
            current,
            event,
            self.config,
            today or self._clock(),
        )

        persisted = await self.save_progress(user_key, updated)
        await self._dispatch(notices)

        unlocked = [n.badge_id for n in notices if n.kind == "badge_unlocked"]
        logger.info(
            "Awarded {} to {}: +{} XP, level {} -> {}, badges {}",
            kind,
            user_key,
            updated.xp - current.xp,
            current.level,
            updated.level,
            unlocked,
        )
        return AwardOutcome(
            progress=updated,
            xp_gained=updated.xp - current.xp,
            level_up=updated.level > current.level,
            previous_level=current.level,
            unlocked_badges=unlocked,
            notices=notices,
            persisted=persisted,
        )

    async def assign_daily_challenge(
        self,
        user_key: str,
        pokemon_type: str,
        target_count: int = 1,
        *,
        today: date | None = None,
    ) -> UserProgress:
        if not user_key or not user_key.strip():
            logger.warning("Ignoring daily challenge for a blank user key")
            return default_progress()
        if target_count < 1:
            raise ValueError("target_count must be at least 1")

        progress = await self.load_progress(user_key)
        status = refresh_daily_challenge(
            progress.daily_challenge_status,
            today or self._clock(),
        )
        if status.completed:
            # Today's cycle is already done; the next one starts tomorrow.
            return progress

        progress.daily_challenge_status = status.model_copy(
            update={
                "completed": False,
                "pokemon_type": pokemon_type,
                "target_count": target_count,
            }
        )
        await self.save_progress(user_key, progress)
        return progress

    async def reset_progress(self, user_key: str) -> bool:
        try:
            await self._repository.delete(user_key)
        except Exception as exc:
            logger.error(
                "Failed to reset progress for {}: {!r}", user_key, exc
            )
            return False
        logger.info("Progress reset for {}", user_key)
        return True

    async def _dispatch(self, notices: List[ProgressionNotice]) -> None:
        if self._sink is None:
            return
        for notice in notices:
            try:
                await self._sink.notify(notice)
            except Exception as exc:
                logger.warning(
                    "Failed to dispatch {} notice for {}: {!r}",
                    notice.kind,
                    notice.user_key,
                    exc,
                )

    def list_badges(self, progress: UserProgress) -> List[Dict[str, object]]:
        owned = set(progress.badges)
        return [
            {
                "id": badge.id,
                "title": badge.title,
                "description": badge.description,
                "target": badge.target,
                "current": badge.current_value(progress.stats),
                "progress_percent": (
                    100
                    if badge.id in owned
                    else badge.progress_percent(progress.stats)
                ),
                "is_obtained": badge.id in owned,
            }
            for badge in self.config.badges
        ]

    def list_levels(self) -> List[Dict[str, int]]:
        return [
            {"level": level, "xp_required": xp}
            for level, xp in self.config.level_table.items()
        ]

    def build_profile_payload(
        self,
        progress: UserProgress,
        *,
        today: date | None = None,
    ) -> Dict[str, object]:
        table = self.config.level_table
        status = refresh_daily_challenge(
            progress.daily_challenge_status,
            today or self._clock(),
        )
        return {
            "level": progress.level,
            "xp": progress.xp,
            "xp_to_next_level": xp_to_next_level(progress.xp, table),
            "next_level_xp": xp_threshold_for_next_level(progress.level, table),
            "progress_percent": progress_percent(progress.xp, table),
            "is_max_level": is_max_level(progress.level, table),
            "badges": list(progress.badges),
            "daily_challenge": {
                "completed": status.completed,
                "last_completion_date": status.last_completion_date,
                "pokemon_type": status.pokemon_type,
                "target_count": status.target_count,
            },
        }


__all__ = [
    "default_progress",
    "with_defaults",
    "refresh_daily_challenge",
    "apply_award",
    "ProgressionEngine",
]
