"""Pytest configuration and fixtures for Resume API tests."""
import os
from typing import AsyncGenerator, AsyncIterator, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test env BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret-key-for-testing")
os.environ["RATE_LIMIT_ENABLED"] = "false"

# Clear config cache so get_settings picks up test env
from resume_api.config import get_settings

get_settings.cache_clear()

from resume_api.main import app
from resume_api.auth import jwt_handler
from resume_api.database import get_db
from resume_api.exceptions import ObjectStoreError
from resume_api.models.base import Base
from resume_api.storage import ObjectStore, get_object_store

# Import all models so Base.metadata has all tables
import resume_api.models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "password123!"


class InMemoryObjectStore(ObjectStore):
    """Object store double. Deleting a key listed in ``fail_deletes`` raises."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_deletes: set[str] = set()
        self.delete_attempts: list[str] = []

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = (data, content_type)
        return f"memory://{key}"

    async def delete(self, key: str) -> None:
        self.delete_attempts.append(key)
        if key in self.fail_deletes:
            raise ObjectStoreError(f"Failed to delete {key}")
        self.objects.pop(key, None)

    async def presigned_get_url(self, key: str, ttl_seconds: int) -> str:
        return f"memory://{key}?expires={ttl_seconds}"

    async def get_stream(self, key: str) -> tuple[AsyncIterator[bytes], Optional[str]]:
        if key not in self.objects:
            raise ObjectStoreError(f"Failed to read {key}")
        data, content_type = self.objects[key]

        async def _iter() -> AsyncIterator[bytes]:
            for i in range(0, len(data), 4):
                yield data[i:i + 4]

        return _iter(), content_type


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost keeps password hashing out of test runtime."""
    monkeypatch.setattr(jwt_handler, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables on a fresh in-memory database and yield a session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession, object_store: InMemoryObjectStore) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database and storage dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, email: str, name: str = "Test User") -> dict:
    """Register a user, log in, and return bearer auth headers."""
    response = await client.post(
        "/api/users/register",
        json={"email": email, "name": name, "password": TEST_PASSWORD},
    )
    assert response.status_code == 201, response.text

    response = await client.post("/api/users/login", json={"email": email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def user_factory(client: AsyncClient):
    """Factory fixture: `await user_factory(email)` returns auth headers for a new user."""

    async def _make(email: str, name: str = "Test User") -> dict:
        return await register_and_login(client, email, name)

    return _make


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict:
    return await register_and_login(client, "test@example.com")


@pytest.fixture
def resume_payload() -> dict:
    return {
        "name": "Backend resume",
        "gender": "female",
        "birthDate": "1990-01-01",
        "address": "Seoul, Gangnam-gu",
        "phone": "010-1234-5678",
        "jobStatus": "seeking",
        "description": "Backend engineer",
    }


@pytest.fixture
def complete_payload(resume_payload: dict) -> dict:
    return {
        "basicInfo": resume_payload,
        "educations": [
            {
                "startDate": "2008-03-01",
                "endDate": "2012-02-28",
                "schoolName": "Seoul National University",
                "major": "Computer Science",
                "location": "Seoul",
                "type": "bachelor",
            }
        ],
        "experiences": [
            {
                "companyName": "Naver",
                "position": "Engineer",
                "department": "Platform",
                "jobRole": "Backend",
                "location": "Pangyo",
                "startDate": "2012-03-01",
                "endDate": "2018-02-28",
                "description": "Built search APIs",
            },
            {
                "companyName": "Kakao",
                "position": "Senior Engineer",
                "department": "Payments",
                "jobRole": "Backend",
                "location": "Pangyo",
                "startDate": "2018-03-01",
                "endDate": "2024-02-29",
                "description": "Led the payments backend",
            },
        ],
        "skills": [
            {"skillName": "Python", "level": "advanced"},
            {"skillName": "PostgreSQL", "level": "intermediate"},
        ],
    }


@pytest.fixture
async def resume(client: AsyncClient, auth_headers: dict, complete_payload: dict) -> dict:
    """A résumé with one education, two experiences and two skills."""
    response = await client.post("/api/resumes/complete", json=complete_payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()
