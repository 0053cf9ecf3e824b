"""
Pytest fixtures for the test database, client, users and authentication.

Each test gets its own in-memory SQLite database, built with the application's
engine factory so SAVEPOINTs and foreign keys behave as they do in production.
"""

import os

# Settings are read once at import time; pin the test configuration first.
os.environ["REDIS_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["SEED_DEFAULT_TAGS"] = "false"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from convenly.core.logging import build_logger
from convenly.core.security import BcryptHasher
from convenly.db.base import Base
from convenly.db.session import build_engine, build_sessionmaker, get_db
from convenly.main import app
from convenly.models.tag import Tag
from convenly.models.user import User
from convenly.repositories.events import EventRepository
from convenly.repositories.sessions import SessionRepository
from convenly.repositories.tags import TagRepository
from convenly.repositories.users import UserRepository
from convenly.services.event_service import EventService
from convenly.services.user_service import UserService

TEST_DATABASE_URL = "sqlite+aiosqlite://"

STRONG_PASSWORD = "Str0ng!Pass"


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def logger():
    return build_logger("convenly.tests")


@pytest_asyncio.fixture
async def users(db_session: AsyncSession, logger) -> UserRepository:
    return UserRepository(db_session, logger)


@pytest_asyncio.fixture
async def sessions(db_session: AsyncSession, logger, users: UserRepository) -> SessionRepository:
    return SessionRepository(db_session, logger, users)


@pytest_asyncio.fixture
async def tags(db_session: AsyncSession, logger) -> TagRepository:
    return TagRepository(db_session, logger)


@pytest_asyncio.fixture
async def events(db_session: AsyncSession, logger, tags: TagRepository) -> EventRepository:
    return EventRepository(db_session, logger, tags)


@pytest_asyncio.fixture
async def user_service(users, sessions, logger) -> UserService:
    return UserService(users, sessions, BcryptHasher(rounds=4), logger)


@pytest_asyncio.fixture
async def event_service(events, tags, logger) -> EventService:
    return EventService(events, tags, logger)


@pytest_asyncio.fixture
async def seeded_tags(db_session: AsyncSession, tags: TagRepository) -> list[Tag]:
    await tags.seed_defaults()
    await db_session.commit()
    return await tags.find_all()


@pytest_asyncio.fixture
async def attendee(db_session: AsyncSession, user_service: UserService) -> User:
    """A freshly registered user; registration always yields the ATTENDEE role."""
    user = await user_service.register("Alice", "alice@example.com", STRONG_PASSWORD)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def host(db_session: AsyncSession, user_service: UserService) -> User:
    user = await user_service.register("Hank", "hank@example.com", STRONG_PASSWORD)
    await user_service.promote_to_host(user.id)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_host(db_session: AsyncSession, user_service: UserService) -> User:
    user = await user_service.register("Olga", "olga@example.com", STRONG_PASSWORD)
    await user_service.promote_to_host(user.id)
    await db_session.commit()
    return user


async def _bearer_for(user: User, sessions: SessionRepository, db_session: AsyncSession) -> dict:
    token = await sessions.create(user.email)
    await db_session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def attendee_headers(attendee: User, sessions, db_session) -> dict:
    return await _bearer_for(attendee, sessions, db_session)


@pytest_asyncio.fixture
async def host_headers(host: User, sessions, db_session) -> dict:
    return await _bearer_for(host, sessions, db_session)


@pytest_asyncio.fixture
async def other_host_headers(other_host: User, sessions, db_session) -> dict:
    return await _bearer_for(other_host, sessions, db_session)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, event_service: EventService, host: User, seeded_tags):
    """Factory creating committed events owned by `host`."""

    async def _make(name="Jazz Night", date=None, fee=0.0, tags=(), organizer=None):
        event = await event_service.create_event(
            organizer_id=(organizer or host).id,
            name=name,
            date=date or datetime.now(timezone.utc) + timedelta(days=30),
            latitude=52.52,
            longitude=13.405,
            fee=fee,
            description=f"{name} description",
            tags=tags,
        )
        await db_session.commit()
        return event

    return _make
