"""App-level wiring: health check, request ids, security headers, settings helpers."""
from httpx import AsyncClient

from resume_api.config import Settings


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "checks": {"database": "ok"}}


async def test_request_id_and_security_headers(client: AsyncClient):
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 8
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


async def test_incoming_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["x-request-id"] == "trace-123"


async def test_unknown_route_is_404(client: AsyncClient):
    response = await client.get("/api/nope")
    assert response.status_code == 404


def _settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret_key": "a",
        "jwt_refresh_secret_key": "b",
    }
    values.update(overrides)
    return Settings(**values)


def test_cors_origins_split_and_deduped():
    settings = _settings(frontend_url="https://app.example.com/, https://admin.example.com,https://app.example.com")
    assert settings.cors_origins == ["https://app.example.com", "https://admin.example.com"]


def test_async_database_url():
    assert _settings(database_url="postgres://u:p@db/resumes").async_database_url == (
        "postgresql+asyncpg://u:p@db/resumes"
    )
    assert _settings(database_url="postgresql://u:p@db/resumes").async_database_url == (
        "postgresql+asyncpg://u:p@db/resumes"
    )
    assert _settings().async_database_url == "sqlite+aiosqlite://"


def test_is_production():
    assert _settings(environment="Production").is_production
    assert not _settings().is_production


def test_unknown_settings_are_ignored(monkeypatch):
    monkeypatch.setenv("SOME_OTHER_SERVICE_TOKEN", "x")
    settings = _settings(unknown_option="x")
    assert not hasattr(settings, "unknown_option")
    assert not hasattr(settings, "some_other_service_token")
    assert settings.jwt_secret_key == "a"
