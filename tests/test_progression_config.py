"""
Tests for badge definitions and progression config loading.
"""
import json
from pathlib import Path

import pytest

from app.core.progression.badges import DEFAULT_BADGES, BadgeDefinition, newly_unlocked
from app.core.progression.config import (
    ProgressionConfig,
    ProgressionConfigError,
    build_progression_config,
    load_progression_config,
)
from app.core.progression.schemas import ProgressStats


EXAMPLE_CONFIG = Path(__file__).resolve().parents[1] / "progression.example.json"


class TestBadgeDefinitions:
    def test_default_badges(self):
        ids = [badge.id for badge in DEFAULT_BADGES]
        assert ids == ["KANTO", "SOCIALITE", "DAILY_VETERAN"]

    def test_kanto_counts_distinct_ids(self):
        kanto = ProgressionConfig().badge("KANTO")
        stats = ProgressStats(captured_kanto_ids=[1, 4, 7, 25])
        assert kanto.current_value(stats) == 4
        assert not kanto.is_satisfied(stats)
        stats.captured_kanto_ids.append(150)
        assert kanto.is_satisfied(stats)

    def test_newly_unlocked_skips_owned(self):
        stats = ProgressStats(discovery_posts=1)
        assert [b.id for b in newly_unlocked(DEFAULT_BADGES, stats, [])] == [
            "SOCIALITE"
        ]
        assert newly_unlocked(DEFAULT_BADGES, stats, ["SOCIALITE"]) == []

    def test_progress_percent_capped(self):
        veteran = ProgressionConfig().badge("DAILY_VETERAN")
        assert veteran.progress_percent(ProgressStats(daily_challenges_completed=3)) == 43
        assert veteran.progress_percent(ProgressStats(daily_challenges_completed=70)) == 100

    def test_unknown_counter_rejected(self):
        with pytest.raises(ValueError):
            BadgeDefinition(id="X", title="X", target=1, counter="steps_walked")

    def test_zero_target_rejected(self):
        with pytest.raises(ValueError):
            BadgeDefinition(id="X", title="X", target=0, counter="captures")


class TestProgressionConfig:
    def test_xp_for_known_and_unknown_kinds(self):
        config = ProgressionConfig()
        assert config.xp_for("POKEMON_CAPTURE") == 50
        assert config.xp_for("DAILY_CHALLENGE_COMPLETE") == 150
        assert config.xp_for("FIRST_DISCOVERY_POST") == 200
        assert config.xp_for("TRADE_COMPLETED") == 0

    def test_xp_awards_are_read_only(self):
        config = ProgressionConfig()
        with pytest.raises(TypeError):
            config.xp_awards["POKEMON_CAPTURE"] = 1_000

    def test_kanto_range(self):
        config = ProgressionConfig()
        assert config.is_kanto(1)
        assert config.is_kanto(151)
        assert not config.is_kanto(152)
        assert not config.is_kanto(None)

    def test_duplicate_badge_ids_rejected(self):
        badge = DEFAULT_BADGES[0]
        with pytest.raises(ProgressionConfigError):
            ProgressionConfig(badges=(badge, badge))

    def test_missing_path_returns_defaults(self):
        config = load_progression_config(None)
        assert config.level_table.max_level == 10
        assert config.badge("SOCIALITE").title == "Social Trainer"

    def test_example_file_matches_defaults(self):
        config = load_progression_config(str(EXAMPLE_CONFIG))
        defaults = ProgressionConfig()
        assert config.level_table == defaults.level_table
        assert dict(config.xp_awards) == dict(defaults.xp_awards)
        assert config.badges == defaults.badges
        assert config.kanto_range == defaults.kanto_range

    def test_custom_table_from_file(self, tmp_path):
        path = tmp_path / "progression.json"
        path.write_text(
            json.dumps(
                {
                    "levels": {"1": 0, "2": 10},
                    "xpAwards": {"POKEMON_CAPTURE": 5},
                    "badges": [
                        {
                            "id": "FIRST_CATCH",
                            "title": "First Catch",
                            "target": 1,
                            "counter": "captures",
                        }
                    ],
                }
            ),
            encoding="utf-8",
        )
        config = load_progression_config(str(path))
        assert config.level_table.max_level == 2
        assert config.xp_for("POKEMON_CAPTURE") == 5
        assert config.xp_for("FIRST_DISCOVERY_POST") == 0
        assert [b.id for b in config.badges] == ["FIRST_CATCH"]

    def test_unreadable_file_fails_fast(self, tmp_path):
        with pytest.raises(ProgressionConfigError):
            load_progression_config(str(tmp_path / "missing.json"))

    def test_invalid_table_fails_fast(self):
        with pytest.raises(ProgressionConfigError):
            build_progression_config({"levels": {"1": 5}})

    def test_invalid_badge_fails_fast(self):
        with pytest.raises(ProgressionConfigError):
            build_progression_config(
                {
                    "levels": {"1": 0},
                    "badges": [
                        {"id": "X", "title": "X", "target": 1, "counter": "nope"}
                    ],
                }
            )

    def test_negative_xp_award_in_file_fails_fast(self):
        with pytest.raises(ProgressionConfigError):
            build_progression_config(
                {"levels": {1: 0, 2: 100}, "xpAwards": {"PENALTY": -10}}
            )

    def test_negative_xp_award_rejected_by_config(self):
        with pytest.raises(ProgressionConfigError):
            ProgressionConfig(xp_awards={"PENALTY": -10})
