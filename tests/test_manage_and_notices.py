"""
Tests for the operator CLI, notification sinks and the notice inbox.
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import manage
from app.core.progression.inbox import drain_notices, notice_inbox_key, push_notice
from app.core.progression.notifications import (
    CeleryNotificationSink,
    LoggingNotificationSink,
    build_notification_sink,
)
from app.core.progression.schemas import ProgressionNotice
from app.core.security import decode_token


USER = "misty@cerulean.city"


def _notice(kind="badge_unlocked"):
    return ProgressionNotice(
        user_key=USER,
        kind=kind,
        message="Badge Unlocked: Social Trainer!",
        badge_id="SOCIALITE",
    )


class TestManage:
    def test_issue_token(self, capsys):
        assert manage.main(["issue-token", f" {USER} "]) == 0
        token = capsys.readouterr().out.strip()
        payload = decode_token(token)
        assert payload["sub"] == USER
        assert payload["type"] == "access"

    def test_show_prints_stored_record(self, engine, store, capsys):
        store.data[f"progress:{USER}"] = json.dumps({"xp": 260, "badges": ["KANTO"]})

        manage.cmd_show(USER, engine=engine)

        printed = json.loads(capsys.readouterr().out)
        assert printed["xp"] == 260
        assert printed["level"] == 3
        assert printed["badges"] == ["KANTO"]
        assert printed["dailyChallengeStatus"]["targetCount"] == 1

    def test_reset(self, engine, store, capsys):
        store.data[f"progress:{USER}"] = json.dumps({"xp": 10})

        assert manage.cmd_reset(USER, engine=engine) == 0
        assert store.data == {}
        assert capsys.readouterr().out.strip() == "reset"

    def test_reset_failure_exit_code(self, engine, store):
        store.fail_writes = True
        assert manage.cmd_reset(USER, engine=engine) == 1


class TestNotificationSinks:
    def test_backend_selection(self):
        assert isinstance(build_notification_sink("log"), LoggingNotificationSink)
        assert isinstance(build_notification_sink("celery"), CeleryNotificationSink)

    @pytest.mark.asyncio
    async def test_logging_sink(self):
        await LoggingNotificationSink().notify(_notice())

    @pytest.mark.asyncio
    async def test_celery_sink_enqueues_task(self):
        with patch(
            "app.core.progression.notifications.deliver_progression_notice"
        ) as task:
            await CeleryNotificationSink().notify(_notice())

        task.delay.assert_called_once()
        kwargs = task.delay.call_args.kwargs
        assert kwargs["user_key"] == USER
        assert kwargs["payload"]["badge_id"] == "SOCIALITE"
        assert kwargs["payload"]["kind"] == "badge_unlocked"


class TestNoticeInbox:
    def test_key(self):
        assert notice_inbox_key(f" {USER}") == f"notices:{USER}"

    def test_push_trims_to_limit(self):
        redis = MagicMock()
        pipe = redis.pipeline.return_value

        push_notice(redis, USER, {"message": "hi"}, limit=50)

        pipe.rpush.assert_called_once_with(
            f"notices:{USER}", json.dumps({"message": "hi"})
        )
        pipe.ltrim.assert_called_once_with(f"notices:{USER}", -50, -1)
        pipe.execute.assert_called_once()

    def test_worker_task_stores_notice(self):
        from pokehunt_bg_worker.notices_worker import deliver_progression_notice

        redis = MagicMock()
        with patch(
            "pokehunt_bg_worker.notices_worker.get_sync_redis", return_value=redis
        ):
            deliver_progression_notice.run(
                user_key=USER, payload=_notice().model_dump(mode="json")
            )

        redis.pipeline.return_value.rpush.assert_called_once()

    @pytest.mark.asyncio
    async def test_drain_skips_unreadable_entries(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(
            return_value=[["{bad", json.dumps({"message": "hi"})], 1]
        )
        pipe.__aenter__ = AsyncMock(return_value=pipe)
        pipe.__aexit__ = AsyncMock(return_value=False)
        redis = MagicMock()
        redis.pipeline.return_value = pipe

        notices = await drain_notices(redis, USER)

        assert notices == [{"message": "hi"}]
        pipe.lrange.assert_called_once_with(f"notices:{USER}", 0, -1)
        pipe.delete.assert_called_once_with(f"notices:{USER}")
