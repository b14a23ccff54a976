"""
Pytest configuration and fixtures for testing.

Provides database fixtures, mock data factories, a controllable clock and
an HTTP client for the FastAPI application.

Tests run against an in-memory mongomock database by default. Set
``TEST_MONGO_URI`` to run them against a real MongoDB server instead.
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from mongomock_motor import AsyncMongoMockClient

from stream11.api.app import create_app
from stream11.api.dependencies import get_clock, get_database, get_http_client
from stream11.auth.tokens import SessionTokens
from stream11.config.settings import (
    AppSettings,
    PointsSettings,
    SessionSettings,
    Settings,
    TwitchSettings,
)
from stream11.db.indexes import ensure_indexes
from stream11.models.prediction import Prediction, PredictionCreate
from stream11.models.user import TwitchProfile, User
from stream11.repositories.prediction_repository import PredictionRepository
from stream11.repositories.user_repository import UserRepository
from stream11.services.prediction_service import PredictionService
from stream11.services.status_service import StatusService
from stream11.services.user_service import UserService
from tests.fakes import BACKEND_URL, FRONTEND_URL, TEST_SECRET, twitch_handler


# =============================================================================
# Clock
# =============================================================================


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at a whole second so Mongo's millisecond precision is exact."""
    return FixedClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    Create an indexed test database that gets cleaned up after each test.
    """
    db_name = f"test_stream11_{ObjectId()}"
    mongo_uri = os.getenv("TEST_MONGO_URI")

    if not mongo_uri:
        db = AsyncMongoMockClient(tz_aware=True)[db_name]
        await ensure_indexes(db)
        yield db
        return

    client = AsyncIOMotorClient(mongo_uri, tz_aware=True)
    try:
        await client.admin.command("ping")
        db = client[db_name]
        await ensure_indexes(db)
        yield db
        await client.drop_database(db_name)
    finally:
        client.close()


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def user_repository(test_db: AsyncIOMotorDatabase) -> UserRepository:
    """Create a UserRepository instance with test database."""
    return UserRepository(test_db)


@pytest.fixture
def prediction_repository(test_db: AsyncIOMotorDatabase) -> PredictionRepository:
    """Create a PredictionRepository instance with test database."""
    return PredictionRepository(test_db)


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def user_service(test_db: AsyncIOMotorDatabase) -> UserService:
    """Create a UserService instance with test database."""
    return UserService(test_db, starting_points=1000)


@pytest.fixture
def prediction_service(
    test_db: AsyncIOMotorDatabase,
    user_service: UserService,
    clock: FixedClock,
) -> PredictionService:
    """Create a PredictionService instance with test database and fixed clock."""
    return PredictionService(test_db, stake_per_vote=10, user_service=user_service, clock=clock)


@pytest.fixture
def status_service(test_db: AsyncIOMotorDatabase, clock: FixedClock) -> StatusService:
    """Create a StatusService instance with test database."""
    return StatusService(test_db, clock=clock)


@pytest.fixture
def session_tokens() -> SessionTokens:
    return SessionTokens(TEST_SECRET, max_age_days=14)


# =============================================================================
# Factory Fixtures
# =============================================================================


class ProfileFactory:
    """Factory for creating Twitch profiles."""

    _counter = 0

    @classmethod
    def create(
        cls,
        twitch_id: str | None = None,
        login: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
    ) -> TwitchProfile:
        """Create a TwitchProfile with default or provided values."""
        cls._counter += 1

        return TwitchProfile(
            id=twitch_id or f"{1000 + cls._counter}",
            login=login or f"viewer_{cls._counter}",
            display_name=display_name or f"Viewer{cls._counter}",
            email=email or f"viewer_{cls._counter}@example.com",
            profile_image_url=f"https://static.twitch.test/{cls._counter}.png",
        )


class PredictionFactory:
    """Factory for creating prediction creation data."""

    _counter = 0

    @classmethod
    def create_data(
        cls,
        title: str | None = None,
        option_a: str = "Yes",
        option_b: str = "No",
        duration_minutes: object = 10,
        game_type: str | None = "valorant",
    ) -> PredictionCreate:
        """Create PredictionCreate data."""
        cls._counter += 1

        return PredictionCreate(
            game_type=game_type,
            title=title or f"Will we win round {cls._counter}?",
            option_a=option_a,
            option_b=option_b,
            duration_minutes=duration_minutes,
        )


@pytest.fixture
def profile_factory() -> type[ProfileFactory]:
    """Provide ProfileFactory class."""
    ProfileFactory._counter = 0
    return ProfileFactory


@pytest.fixture
def prediction_factory() -> type[PredictionFactory]:
    """Provide PredictionFactory class."""
    PredictionFactory._counter = 0
    return PredictionFactory


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def make_user(
    user_service: UserService,
    profile_factory: type[ProfileFactory],
) -> Callable:
    """Store a user through the login upsert and return it."""

    async def _make_user(**kwargs) -> User:
        return await user_service.upsert_profile(
            profile_factory.create(**kwargs), access_token="twitch-token"
        )

    return _make_user


@pytest_asyncio.fixture
async def creator(make_user) -> User:
    return await make_user(twitch_id="100", login="streamer")


@pytest_asyncio.fixture
async def sample_prediction(
    prediction_service: PredictionService,
    creator: User,
    prediction_factory: type[PredictionFactory],
) -> Prediction:
    """Create and return an active prediction in the database."""
    return await prediction_service.create_prediction(creator, prediction_factory.create_data())


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        session=SessionSettings(secret_key=TEST_SECRET, cookie_secure=False),
        twitch=TwitchSettings(client_id="test-client", client_secret="test-secret"),
        points=PointsSettings(starting_balance=1000, stake_per_vote=10),
        app=AppSettings(frontend_url=FRONTEND_URL, backend_url=BACKEND_URL),
    )


@pytest_asyncio.fixture
async def twitch_http() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(twitch_handler)) as client:
        yield client


@pytest_asyncio.fixture
async def client(
    settings: Settings,
    test_db: AsyncIOMotorDatabase,
    twitch_http: httpx.AsyncClient,
    clock: FixedClock,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for the app with the test database and mocked Twitch."""
    app = create_app(settings)
    app.dependency_overrides[get_database] = lambda: test_db
    app.dependency_overrides[get_http_client] = lambda: twitch_http
    app.dependency_overrides[get_clock] = lambda: clock

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=BACKEND_URL) as http:
        yield http


@pytest.fixture
def login_as(client: httpx.AsyncClient, session_tokens: SessionTokens):
    """Put a session cookie for ``user`` on the test client."""

    def _login_as(user: User) -> str:
        token = session_tokens.mint(user.twitch_id, user.username)
        client.cookies.set("session_token", token)
        return token

    return _login_as
