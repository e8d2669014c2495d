"""Service test fixtures: async DB, seeded accounts and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Seeded accounts: admin (1), moderators (2, 3), users (4, 5)
    - get_db dependency overridden to use the test DB session factory
    - db_manager patched so the sweep task opens sessions on the test DB

Design Decisions:
    - SQLite in-memory: fast, no external dependency; PostgreSQL-specific
      behaviour is not exercised here
    - Sweep task dependency overridden with a task that is never started
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from forum_moderation.db.base import Base
from forum_moderation.infrastructure.database import get_db, get_db_manager, DatabaseSessionManager
from forum_moderation.infrastructure.sweep_scheduler import SanctionsSweepTask, get_sweep_task
from forum_moderation.infrastructure.audit_store import (
    SqlAlchemyActivityLogStore, SqlAlchemyNotificationStore,
)
from forum_moderation.infrastructure.sanction_store import SqlAlchemySanctionStore
from forum_moderation.infrastructure.user_store import SqlAlchemyUserStore
from forum_moderation.models import Role, User
from forum_moderation.services.factories import build_expiration_sweep
import forum_moderation.infrastructure.database as db_module
from forum_moderation.main import app

ADMIN_ID, MODERATOR_ID, OTHER_MODERATOR_ID, OTHER_USER_ID, USER_ID = 1, 2, 3, 4, 5

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock: commands read .now through __call__."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def seed_users(test_db):
    """Roles plus one account per position in the hierarchy."""
    roles = {name: Role(id=i, name=name) for i, name in enumerate(
        ("admin", "moderator", "user"), start=1,
    )}
    test_db.add_all(roles.values())
    accounts = [
        (ADMIN_ID, "alice", "admin"),
        (MODERATOR_ID, "bob", "moderator"),
        (OTHER_MODERATOR_ID, "dave", "moderator"),
        (OTHER_USER_ID, "erin", "user"),
        (USER_ID, "carol", "user"),
    ]
    users = {}
    for user_id, username, role in accounts:
        users[user_id] = User(
            id=user_id, username=username, email=f"{username}@forum.test",
            role_id=roles[role].id,
        )
    test_db.add_all(users.values())
    await test_db.commit()
    for user in users.values():
        await test_db.refresh(user, ["role"])
    return users


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stores(test_db):
    return SimpleNamespace(
        users=SqlAlchemyUserStore(test_db),
        sanctions=SqlAlchemySanctionStore(test_db),
        activity_log=SqlAlchemyActivityLogStore(test_db),
        notifications=SqlAlchemyNotificationStore(test_db),
    )


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB and sweep dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Sweep task opens its own sessions through db_manager
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    sweep_task = SanctionsSweepTask(get_db_manager, build_expiration_sweep)
    app.dependency_overrides[get_sweep_task] = lambda: sweep_task

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
