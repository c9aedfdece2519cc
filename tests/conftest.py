"""
Pytest configuration and fixtures

The progression engine runs against an in-memory key-value store so no
Redis server is needed; notices are captured instead of sent to Celery.
"""
from datetime import date
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_progression_engine
from app.core.progression.config import ProgressionConfig
from app.core.progression.schemas import ProgressionNotice
from app.core.progression.services import ProgressionEngine
from app.core.security import create_access_token
from app.main import app


TODAY = date(2026, 10, 18)


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.reads = 0
        self.writes = 0

    async def get(self, key: str) -> Optional[str]:
        self.reads += 1
        if self.fail_reads:
            raise ConnectionError("store unavailable")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.writes += 1
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.data[key] = value

    async def delete(self, key: str) -> None:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.data.pop(key, None)


class RecordingSink:
    def __init__(self) -> None:
        self.notices: List[ProgressionNotice] = []
        self.fail = False

    async def notify(self, notice: ProgressionNotice) -> None:
        if self.fail:
            raise RuntimeError("sink down")
        self.notices.append(notice)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(store, sink):
    return ProgressionEngine(
        store,
        ProgressionConfig(),
        sink,
        key_prefix="progress",
        clock=lambda: TODAY,
    )


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_progression_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.pop(get_progression_engine, None)


@pytest.fixture
def auth_headers():
    token = create_access_token(user_key="ash@pallet.town")
    return {"Authorization": f"Bearer {token}"}
