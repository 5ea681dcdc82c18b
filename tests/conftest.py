"""
Pytest configuration and fixtures for testing.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.session import Base, get_session
from app.core.security import create_access_token
from app.cache.redis_client import cache
from app.db.models import (
    User,
    Event,
    EventSetting,
    EventParticipant,
    EventParticipantRole,
    RSVPRequest,
    RSVPRequestStatus,
)


# Defaults to a local SQLite file; set TEST_DATABASE_URL to run against PostgreSQL
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./test_rsvp_admission.db"
)

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Every session gets its own connection, as concurrent requests would
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create fresh tables and a database session for each test.
    Tables are dropped again afterwards for complete isolation.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session):
    """Session factory for tests that need several independent connections at once."""
    return TestSessionLocal


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.
    Overrides the database session dependency.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fake_redis():
    """Back the Redis client with fakeredis."""
    original = cache._client
    cache._client = fakeredis.FakeRedis(decode_responses=True)
    try:
        yield cache._client
    finally:
        cache._client.flushall()
        cache._client = original


@pytest.fixture(autouse=True)
def published_events(monkeypatch):
    """Capture RSVP domain events instead of publishing them to RabbitMQ."""
    published = []

    async def mock_publish(routing_key: str, payload: dict):
        published.append((routing_key, payload))

    from app.events import publisher
    monkeypatch.setattr(publisher, "publish_event", mock_publish)
    return published


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """Disable rate limiting for all tests."""
    from app.api.v1.routes import rsvp_requests as rsvp_routes
    monkeypatch.setattr(rsvp_routes.limiter, "enabled", False)


async def create_user(db_session: AsyncSession, name: str, **kwargs) -> User:
    user = User(
        email=f"{name.lower().replace(' ', '.')}@example.com",
        name=name,
        username=name.lower().replace(" ", "_"),
        **kwargs,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def create_event(db_session: AsyncSession, host: User, approval_required: bool = True, **kwargs) -> Event:
    event = Event(title=kwargs.pop("title", "Rooftop Launch Party"), created_by=host.id, **kwargs)
    db_session.add(event)
    await db_session.flush()
    db_session.add(EventSetting(event_id=event.id, is_rsvp_approval_required=approval_required))
    await db_session.commit()
    await db_session.refresh(event)
    return event


async def create_rsvp_request(
    db_session: AsyncSession,
    event: Event,
    user: User,
    status: RSVPRequestStatus = RSVPRequestStatus.Pending,
    decided_by: Optional[User] = None,
    created_at: Optional[datetime] = None,
    responded_at: Optional[datetime] = None,
    is_deleted: bool = False,
) -> RSVPRequest:
    """Insert a request directly, bypassing the workflow."""
    request = RSVPRequest(event_id=event.id, user_id=user.id, status=status, created_by=user.id, is_deleted=is_deleted)
    if created_at is not None:
        request.created_at = created_at
    if status != RSVPRequestStatus.Pending:
        request.responded_at = responded_at or datetime.now(timezone.utc)
        request.responded_by = (decided_by or user).id
    db_session.add(request)
    await db_session.commit()
    await db_session.refresh(request)
    return request


@pytest_asyncio.fixture
async def host_user(db_session: AsyncSession) -> User:
    """The user who created the test events."""
    return await create_user(db_session, "Host User", mobile="+254700000001")


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A regular user asking to attend."""
    return await create_user(
        db_session,
        "Test User",
        mobile="+254700000002",
        image_url="https://cdn.example.com/u/test.png",
        thumbnail_url="https://cdn.example.com/u/test_thumb.png",
        total_gamification_points=120,
        total_gamification_points_weekly=15,
    )


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A user with no standing on any test event."""
    return await create_user(db_session, "Other User")


@pytest_asyncio.fixture
async def gated_event(db_session: AsyncSession, host_user: User) -> Event:
    """An event that requires host approval to RSVP."""
    return await create_event(db_session, host_user, approval_required=True)


@pytest_asyncio.fixture
async def open_event(db_session: AsyncSession, host_user: User) -> Event:
    """An event anyone may RSVP to without approval."""
    return await create_event(db_session, host_user, approval_required=False, title="Open Meetup")


@pytest_asyncio.fixture
async def co_host_user(db_session: AsyncSession, gated_event: Event) -> User:
    """A user holding the CoHost participant role on the gated event."""
    user = await create_user(db_session, "Co Host")
    db_session.add(EventParticipant(event_id=gated_event.id, user_id=user.id, role=EventParticipantRole.CoHost))
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def pending_request(db_session: AsyncSession, gated_event: Event, test_user: User) -> RSVPRequest:
    return await create_rsvp_request(db_session, gated_event, test_user)


def token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id)})


@pytest.fixture
def auth_headers():
    """Build a bearer Authorization header for a user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _headers


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make(name: str, **kwargs) -> User:
        return await create_user(db_session, name, **kwargs)
    return _make


@pytest.fixture
def make_event(db_session: AsyncSession):
    async def _make(host: User, approval_required: bool = True, **kwargs) -> Event:
        return await create_event(db_session, host, approval_required=approval_required, **kwargs)
    return _make


@pytest.fixture
def make_rsvp_request(db_session: AsyncSession):
    async def _make(event: Event, user: User, **kwargs) -> RSVPRequest:
        return await create_rsvp_request(db_session, event, user, **kwargs)
    return _make
