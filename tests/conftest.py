"""
Pytest configuration and fixtures for testing.

The suite runs against TEST_DATABASE_URL, a local SQLite file unless set.
Point it at PostgreSQL (see create_test_db.py) to also run the row-locking
tests marked `postgres`.
"""
import os

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test.db")

# Settings are read at import time, so these must be set before importing eventhub
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from eventhub.main import app
from eventhub.api.caller import Caller
from eventhub.db.session import Base, build_engine, get_session
from eventhub.core.config import settings
from eventhub.core.security import hash_password, create_access_token
from eventhub.db.models.user import User, Account
from eventhub.db.models.event import Event
from eventhub.db.models.rsvp import RSVP, RSVPStatusEnum
from eventhub.schemas import SessionUser

TEST_PASSWORD = "Test123!@#"

# NullPool: every test runs in its own event loop
test_engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def pytest_collection_modifyitems(config, items):
    if TEST_DATABASE_URL.startswith("postgresql"):
        return
    skip_pg = pytest.mark.skip(reason="needs TEST_DATABASE_URL pointing at PostgreSQL")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh schema and session for each test.
    Tables are dropped again afterwards for complete isolation.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints and pages.
    Overrides the database session dependency.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, name: str, email: str) -> User:
    user = User(name=name, email=email)
    user.accounts.append(Account(provider_id="credential", hashed_password=hash_password(TEST_PASSWORD)))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> User:
    """The user who owns the event fixtures."""
    return await _create_user(db_session, "Olga Organizer", "organizer@example.com")


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Alice Attendee", "alice@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "Bob Attendee", "bob@example.com")


def _token_for(user: User) -> str:
    return create_access_token({"sub": user.id, "name": user.name})


@pytest.fixture
def organizer_token(organizer: User) -> str:
    return _token_for(organizer)


@pytest.fixture
def user_token(test_user: User) -> str:
    return _token_for(test_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return _token_for(other_user)


@pytest.fixture
def auth_headers() -> Callable[[str], dict]:
    """Build the Authorization header for a token."""
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def session_cookie() -> Callable[[str], dict]:
    """Build the Cookie header the HTML pages read the session from."""
    def _cookie(token: str) -> dict:
        return {"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}
    return _cookie


@pytest.fixture
def caller_for(db_session: AsyncSession) -> Callable[..., Caller]:
    """Build a Caller acting as `user` (anonymous when None)."""
    def _caller(user=None) -> Caller:
        session_user = SessionUser.model_validate(user) if user is not None else None
        return Caller(db_session, session_user)
    return _caller


async def _create_event(db: AsyncSession, creator: User, **fields) -> Event:
    values = {"name": "Test Event", "location": "Test Location", "date": "2026-11-20 18:00", "capacity": None}
    values.update(fields)
    event = Event(created_by=creator.id, **values)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, organizer: User) -> Event:
    """An event without a capacity limit."""
    return await _create_event(db_session, organizer)


@pytest_asyncio.fixture
async def limited_event(db_session: AsyncSession, organizer: User) -> Event:
    """An event with room for exactly one attendee."""
    return await _create_event(db_session, organizer, name="Small Meetup", capacity=1)


@pytest_asyncio.fixture
async def test_events(db_session: AsyncSession, organizer: User) -> list:
    events = []
    for i in range(3):
        events.append(
            await _create_event(
                db_session,
                organizer,
                name=f"Event {i + 1}",
                location=f"Location {i + 1}",
                capacity=10 * (i + 1),
            )
        )
    return events


@pytest_asyncio.fixture
async def test_rsvp(db_session: AsyncSession, test_user: User, test_event: Event) -> RSVP:
    """test_user attending test_event."""
    rsvp = RSVP(user_id=test_user.id, event_id=test_event.id, status=RSVPStatusEnum.attending)
    db_session.add(rsvp)
    await db_session.commit()
    await db_session.refresh(rsvp)
    return rsvp


class InMemoryRevocationList:
    """Stands in for the Redis cache used by the token revocation list."""

    def __init__(self):
        self.keys = {}

    async def set(self, key, value, expire=300):
        self.keys[key] = value
        return True

    async def exists(self, key):
        return key in self.keys


@pytest.fixture(autouse=True)
def revocation_list(monkeypatch) -> InMemoryRevocationList:
    from eventhub.core import security
    fake = InMemoryRevocationList()
    monkeypatch.setattr(security, "cache", fake)
    return fake


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Mock bcrypt password hashing so tests don't pay for real bcrypt rounds.
    This fixture is autouse, so it applies to all tests automatically.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from eventhub.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """Independent sessions on the test database, one per concurrent client."""
    return TestSessionLocal
