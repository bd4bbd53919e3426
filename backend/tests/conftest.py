"""Pytest configuration and fixtures for HerbTrace tests.

Each test gets a fresh in-memory SQLite database (aiosqlite) wired into the
app through a ``get_db`` override, an in-memory stand-in for Redis, and one
registered user per role with ready-made auth headers.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from herbtrace.auth.jwt import create_access_token
from herbtrace.auth.password import hash_password
from herbtrace.database import Base, get_db
from herbtrace.main import app
from herbtrace.models.enums import UserRole
from herbtrace.models.user import User
from herbtrace.utils import redis as redis_utils

TEST_PASSWORD = "testpassword123"


class InMemoryRedis:
    """The handful of Redis commands the app uses, backed by a dict."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def exists(self, key):
        return int(key in self.store)

    async def ping(self):
        return True

    async def aclose(self):
        self.store.clear()


# ── Database ─────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for direct service calls; commit explicitly when seeding."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> InMemoryRedis:
    client = InMemoryRedis()
    monkeypatch.setattr(redis_utils, "_redis_client", client)
    return client


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests run against the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Users ────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def password_hash() -> str:
    # bcrypt is slow on purpose; hash once per run
    return hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def users(session_factory, password_hash) -> dict[UserRole, User]:
    """One active user per role, committed."""
    created = {}
    async with session_factory() as session:
        for role in UserRole:
            user = User(username=f"{role.value}_user", hashed_password=password_hash, role=role)
            session.add(user)
            created[role] = user
        await session.commit()
    return created


def headers_for(user: User) -> dict:
    token = create_access_token(user_id=user.id, username=user.username, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(users) -> dict[UserRole, dict]:
    """Authorization headers keyed by role."""
    return {role: headers_for(user) for role, user in users.items()}


# ── Stage payloads ───────────────────────────────────────────

@pytest.fixture
def collector_payload() -> dict:
    return {"species": "Neem", "quantity": 5, "farmingType": "Wild", "plantPart": "Bark"}


@pytest.fixture
def location() -> dict:
    return {"lat": 12.97, "lng": 77.59}


@pytest.fixture
def submit(client, auth_headers, location):
    """POST helpers for each stage, authenticated as the matching role."""

    async def collector(**overrides):
        body = {"species": "Ashwagandha", "quantity": 10, "farmingType": "Organic",
                "plantPart": "Root", **overrides}
        resp = await client.post("/collector", json=body, headers=auth_headers[UserRole.COLLECTOR])
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def transport(collector_id, **overrides):
        body = {"collectorId": collector_id, "quantityKg": 9.5, "location": location,
                "destination": "Bengaluru depot", **overrides}
        resp = await client.post("/transport", json=body, headers=auth_headers[UserRole.TRANSPORTER])
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def processing(collector_id, **overrides):
        body = {"collectorId": collector_id, "receivedQuantityKg": 9.5,
                "processedQuantityKg": 8, "processingType": "drying", "location": location,
                **overrides}
        resp = await client.post(
            "/processing", json=body, headers=auth_headers[UserRole.PROCESSING_PLANT]
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def lab(collector_id, **overrides):
        body = {"collectorId": collector_id, "testedQuantityKg": 1, "testType": "moisture",
                "result": "Within limits", "location": location, **overrides}
        resp = await client.post("/labtesting", json=body, headers=auth_headers[UserRole.LAB_TESTING])
        assert resp.status_code == 201, resp.text
        return resp.json()

    return SimpleNamespace(
        collector=collector, transport=transport, processing=processing, lab=lab,
    )


# ── Test Markers ─────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
    config.addinivalue_line("markers", "chain: Chain assembly tests")
