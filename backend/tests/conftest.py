"""
Pytest Configuration and Shared Fixtures

This module contains shared test fixtures and configuration for all test modules.
"""

import gc
import os
import re

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"
os.environ["EMAIL_DELIVERY"] = "log"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["TRACING_ENABLED"] = "false"

if "JWT_SECRET" not in os.environ or not os.environ.get("JWT_SECRET"):
    os.environ["JWT_SECRET"] = "test-jwt-secret-key-for-testing-only-not-for-production-use"

from buzzarfeed import models  # noqa: F401,E402  (registers mappers on Base.metadata)
from buzzarfeed.core.config import settings  # noqa: E402
from buzzarfeed.core.constants import UserType  # noqa: E402
from buzzarfeed.core.security import create_access_token, hash_password  # noqa: E402
from buzzarfeed.db.database import Base, get_db  # noqa: E402
from buzzarfeed.main import app  # noqa: E402
from buzzarfeed.models import User  # noqa: E402
from buzzarfeed.services.cache_service import cache  # noqa: E402
from buzzarfeed.services.notification_service import notifier  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"
DEFAULT_PASSWORD = "Secret123"


@pytest_asyncio.fixture
async def test_db():
    """
    Create an in-memory SQLite database for one test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database. Tables are created before and dropped after the test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

    yield session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    gc.collect()


@pytest_asyncio.fixture
async def db_session(test_db):
    """A session for arranging data and inspecting state directly."""
    async with test_db() as session:
        yield session


@pytest_asyncio.fixture
async def client(test_db):
    """Create test client bound to the test database"""
    async def override_get_db():
        async with test_db() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class RecordingMailer:
    """Stands in for NotificationService.send_email and keeps every message."""

    def __init__(self):
        self.sent = []

    async def __call__(self, to_email, to_name, subject, body, template):
        self.sent.append({
            "to_email": to_email,
            "to_name": to_name,
            "subject": subject,
            "body": body,
            "template": template,
        })
        return True

    def to(self, email: str) -> list[dict]:
        return [message for message in self.sent if message["to_email"] == email]

    def templates(self) -> list[str]:
        return [message["template"] for message in self.sent]

    def reset_token(self, email: str) -> str:
        """Pull the token out of the latest password reset email."""
        body = self.to(email)[-1]["body"]
        return re.search(r"token=([0-9a-f]+)", body).group(1)


@pytest.fixture(autouse=True)
def mailer(monkeypatch):
    """Capture outgoing email instead of queueing it."""
    recorder = RecordingMailer()
    monkeypatch.setattr(notifier, "send_email", recorder)
    return recorder


class FakeRedis:
    """In-memory stand-in for the Redis client."""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture()
def live_cache(monkeypatch):
    """Turn on the shared stall cache, backed by FakeRedis."""
    monkeypatch.setattr(settings, "CACHE_ENABLED", True)
    monkeypatch.setattr(cache, "redis", FakeRedis())
    monkeypatch.setattr(cache, "_connected", True)
    return cache


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory inserting a user directly; returns the User row."""
    async def _make_user(
        name: str,
        email: str | None = None,
        user_type: str = UserType.FOOD_ENTHUSIAST,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True
    ) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            password_hash=hash_password(password),
            user_type=user_type,
            is_active=is_active
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


def headers_for(user: User) -> dict:
    """Bearer headers carrying a session token for ``user``."""
    token = create_access_token(data={"sub": str(user.id), "user_type": user.user_type})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def enthusiast(make_user):
    return await make_user("Foodie Fran", "fran@example.com")


@pytest_asyncio.fixture
async def other_enthusiast(make_user):
    return await make_user("Hungry Hal", "hal@example.com")


@pytest_asyncio.fixture
async def owner(make_user):
    return await make_user("Owner Olive", "olive@example.com", UserType.FOOD_STALL_OWNER)


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("Admin Ada", "ada@example.com", UserType.ADMIN)


@pytest.fixture()
def enthusiast_headers(enthusiast):
    return headers_for(enthusiast)


@pytest.fixture()
def other_headers(other_enthusiast):
    return headers_for(other_enthusiast)


@pytest.fixture()
def owner_headers(owner):
    return headers_for(owner)


@pytest.fixture()
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture()
def stall_payload():
    return {
        "name": "Kuya's Isaw",
        "description": "Grilled street food favourites",
        "address": "Block 3, Food Park",
        "hours": "5PM - 11PM",
        "categories": ["Street Food", "snacks"],
        "latitude": 14.55,
        "longitude": 121.02
    }


@pytest_asyncio.fixture
async def stall(client, owner_headers, stall_payload):
    """An active stall owned by ``owner``; returns its API payload."""
    response = await client.post("/api/v1/stalls", json=stall_payload, headers=owner_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture()
def application_payload():
    return {
        "stall_name": "Lola's Turon",
        "description": "Banana spring rolls with caramel",
        "location": "Stall 12, Night Market",
        "categories": "Snacks, pastries",
        "map_x": 120.5,
        "map_y": 88.0
    }


async def post_review(client, headers, stall_id: int, rating: int, comment: str = "Tasty", **extra) -> dict:
    response = await client.post(
        "/api/v1/reviews",
        json={"stall_id": stall_id, "rating": rating, "comment": comment, **extra},
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
