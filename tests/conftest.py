"""Shared test fixtures for the release tracker test suite."""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./tracker-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)

import uuid
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.constants import IssueState
from tracker.core.config import settings
from tracker.core.database import DatabaseSessionManager
from tracker.core.security import create_jwt_token
from tracker.models.issues import Issue
from tracker.schemas.actorSchema import Actor
from tracker.services.NotificationDispatcher import NotificationDispatcher
from tracker.services.ResultCache import ResultCache, get_result_cache


class RecordingNotifier(NotificationDispatcher):
    """Notifier that keeps events in memory instead of posting them."""

    def __init__(self) -> None:
        super().__init__(webhook_url=None)
        self.events: list[tuple[str, dict]] = []

    def dispatch(self, event: str, payload: dict) -> None:
        self.events.append((event, payload))


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}"


@pytest.fixture
async def db_manager(db_url: str) -> AsyncGenerator[DatabaseSessionManager, None]:
    manager = DatabaseSessionManager()
    await manager.init(db_url)
    yield manager
    await manager.close()


@pytest.fixture
async def db(db_manager: DatabaseSessionManager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache(max_entries=64)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def actor() -> Actor:
    return Actor(actor_id="user-1", project_ids=frozenset({1, 2}), group_ids=frozenset({10}))


@pytest.fixture
def outsider() -> Actor:
    return Actor(actor_id="user-9", project_ids=frozenset({99}), group_ids=frozenset())


@pytest.fixture
def add_issue(db: AsyncSession):
    async def _add(milestone_id: str, closed: bool = False, weight: int | None = None) -> Issue:
        issue = Issue(
            issue_id=str(uuid.uuid4()),
            milestone_id=milestone_id,
            title=f"issue-{uuid.uuid4().hex[:6]}",
            state=IssueState.closed if closed else IssueState.opened,
            weight=weight,
        )
        db.add(issue)
        await db.commit()
        return issue

    return _add


@pytest.fixture
def make_headers():
    """Build bearer headers for an actor with the given memberships."""

    def _headers(sub: str = "user-1", projects=(1, 2), groups=(10,)) -> dict:
        token = create_jwt_token({"sub": sub, "projects": list(projects), "groups": list(groups)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def headers(make_headers) -> dict:
    return make_headers()


@pytest.fixture
def client(db_url: str, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """TestClient over a fresh sqlite database; the lifespan creates the tables."""
    monkeypatch.setattr(settings, "DATABASE_URL", db_url)
    get_result_cache().clear()

    from tracker.main import app

    with TestClient(app) as test_client:
        yield test_client
    get_result_cache().clear()

