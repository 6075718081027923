"""
Pytest configuration and fixtures for Team Calendar tests.

This module provides shared fixtures for the database, roster data,
notification capture, and the HTTP test client.
"""

import sys
import uuid
from typing import AsyncGenerator, List
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path to import teamcal modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from teamcal.main import app
from teamcal.database import Base, get_db
from teamcal.config import Settings
from teamcal.models import AccessType, Team, TeamMembership
from teamcal.services.event_service import EventService
from teamcal.services.notifications import EventNotice
from teamcal.services.realtime import RealtimeHub
from teamcal.services.roster import CallerContext, DatabaseRoster


# ============================================================================
# Test Configuration
# ============================================================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Provide test-specific settings.

    Uses in-memory SQLite database for tests.
    """
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        DEBUG=True,
        SCHEDULER_ENABLED=False,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def async_engine(test_settings: Settings):
    """
    Create async database engine for tests.

    Uses in-memory SQLite with StaticPool to ensure all connections
    share the same in-memory database.
    """
    engine = create_async_engine(
        test_settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for one test."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(async_engine, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide HTTP test client.

    The same db_session instance is handed to every request so fixture
    data is visible to the routes.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Notification / Realtime Fixtures
# ============================================================================

class RecordingDispatcher:
    """Dispatcher that keeps every notice it is handed."""

    def __init__(self):
        self.notices: List[EventNotice] = []

    async def notify(self, notice: EventNotice) -> None:
        self.notices.append(notice)

    def actions(self) -> List[str]:
        return [notice.action.value for notice in self.notices]


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def hub() -> RealtimeHub:
    return RealtimeHub()


@pytest.fixture
def event_service(db_session: AsyncSession, dispatcher, hub) -> EventService:
    return EventService(db_session, dispatcher, hub)


# ============================================================================
# Roster Fixtures
# ============================================================================

@pytest.fixture
def coach() -> CallerContext:
    return CallerContext(user_id=uuid.uuid4())


@pytest.fixture
def parent() -> CallerContext:
    return CallerContext(user_id=uuid.uuid4())


@pytest.fixture
def outsider() -> CallerContext:
    return CallerContext(user_id=uuid.uuid4())


@pytest_asyncio.fixture
async def team(db_session: AsyncSession, coach: CallerContext, parent: CallerContext) -> Team:
    """
    Create a team with one head coach and one parent.
    """
    team = Team(
        name="U12 Blue",
        age_group="U12",
        organization_id=uuid.uuid4(),
        organization_name="Riverside SC",
        color="#111111",
    )
    db_session.add(team)
    await db_session.flush()

    db_session.add_all([
        TeamMembership(
            team_id=team.id,
            user_id=coach.user_id,
            access_type=AccessType.STAFF.value,
            staff_role="head_coach",
        ),
        TeamMembership(
            team_id=team.id,
            user_id=parent.user_id,
            access_type=AccessType.PARENT.value,
            player_id=uuid.uuid4(),
            player_name="Sam",
        ),
    ])
    await db_session.commit()
    await db_session.refresh(team)
    return team


@pytest_asyncio.fixture
async def other_team(db_session: AsyncSession, coach: CallerContext) -> Team:
    """
    Create a second team coached by the same user.
    """
    team = Team(name="U10 Red", age_group="U10", color="#222222")
    db_session.add(team)
    await db_session.flush()

    db_session.add(TeamMembership(
        team_id=team.id,
        user_id=coach.user_id,
        access_type=AccessType.STAFF.value,
        staff_role="assistant_coach",
    ))
    await db_session.commit()
    await db_session.refresh(team)
    return team


@pytest.fixture
def roster(db_session: AsyncSession) -> DatabaseRoster:
    return DatabaseRoster(db_session)


# ============================================================================
# Helper Functions
# ============================================================================

def auth_headers(caller: CallerContext) -> dict:
    """Headers the gateway would add for an authenticated user."""
    return {"X-User-Id": str(caller.user_id)}


@pytest.fixture
def coach_headers(coach: CallerContext) -> dict:
    return auth_headers(coach)


@pytest.fixture
def parent_headers(parent: CallerContext) -> dict:
    return auth_headers(parent)


@pytest.fixture
def outsider_headers(outsider: CallerContext) -> dict:
    return auth_headers(outsider)


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """
    Configure pytest markers.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
