"""User account endpoints: registration, login, refresh, logout, password, withdrawal."""
import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

REGISTER = "/api/users/register"
LOGIN = "/api/users/login"
REFRESH = "/api/users/refresh"


async def test_register_success(client: AsyncClient):
    response = await client.post(
        REGISTER,
        json={"email": "Jane@Example.com", "name": "Jane Doe", "password": "password123!"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "jane@example.com"
    assert data["name"] == "Jane Doe"
    assert "id" in data
    assert "createdAt" in data
    assert "password" not in data
    assert "hashedPassword" not in data


async def test_register_duplicate_email(client: AsyncClient):
    body = {"email": "dup@example.com", "name": "Dup User", "password": "password123!"}
    assert (await client.post(REGISTER, json=body)).status_code == 201
    response = await client.post(REGISTER, json={**body, "email": "DUP@example.com"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "not-an-email", "name": "Jane", "password": "password123!"},
        {"email": "jane@example.com", "name": "J", "password": "password123!"},
        {"email": "jane@example.com", "name": "Jane", "password": "short"},
        {"email": "jane@example.com", "name": "Jane", "password": "x" * 21},
        {"email": "jane@example.com", "password": "password123!"},
    ],
)
async def test_register_invalid_fields(client: AsyncClient, body: dict):
    response = await client.post(REGISTER, json=body)
    assert response.status_code == 422
    assert "message" in response.json()


async def test_login_sets_refresh_cookie(client: AsyncClient):
    await client.post(REGISTER, json={"email": "a@example.com", "name": "User A", "password": "password123!"})
    response = await client.post(LOGIN, json={"email": "A@example.com", "password": "password123!"})

    assert response.status_code == 200
    data = response.json()
    assert data["tokenType"] == "Bearer"
    assert data["accessToken"]
    assert "refreshToken" not in data

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("refreshToken=")
    assert "HttpOnly" in set_cookie
    assert "SameSite=strict" in set_cookie
    assert "Path=/" in set_cookie
    assert "Max-Age=604800" in set_cookie
    assert "Secure" not in set_cookie


async def test_login_wrong_password(client: AsyncClient):
    await client.post(REGISTER, json={"email": "a@example.com", "name": "User A", "password": "password123!"})
    response = await client.post(LOGIN, json={"email": "a@example.com", "password": "wrongpass1!"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_login_nonexistent_user(client: AsyncClient):
    response = await client.post(LOGIN, json={"email": "nobody@example.com", "password": "password123!"})
    assert response.status_code == 401


async def test_get_me(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/users/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "test@example.com"


async def test_refresh_with_cookie(client: AsyncClient, auth_headers: dict):
    cookie_before = client.cookies.get("refreshToken")
    response = await client.post(REFRESH)

    assert response.status_code == 200
    assert response.json()["accessToken"]
    # Well inside the first half of its lifetime, so the refresh token is kept.
    assert response.cookies.get("refreshToken") == cookie_before


async def test_refresh_without_cookie(client: AsyncClient):
    response = await client.post(REFRESH)
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing refresh token"


async def test_refresh_with_invalid_cookie(client: AsyncClient):
    client.cookies.set("refreshToken", "garbage")
    response = await client.post(REFRESH)
    assert response.status_code == 401


async def test_new_login_supersedes_old_refresh_token(client: AsyncClient, auth_headers: dict):
    old_cookie = client.cookies.get("refreshToken")
    response = await client.post(LOGIN, json={"email": "test@example.com", "password": "password123!"})
    assert response.status_code == 200

    client.cookies.clear()
    client.cookies.set("refreshToken", old_cookie)
    response = await client.post(REFRESH)
    assert response.status_code == 401


async def test_logout_revokes_refresh_token(client: AsyncClient, auth_headers: dict):
    old_cookie = client.cookies.get("refreshToken")

    response = await client.post("/api/users/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert 'refreshToken=""' in response.headers["set-cookie"]

    client.cookies.clear()
    client.cookies.set("refreshToken", old_cookie)
    assert (await client.post(REFRESH)).status_code == 401


async def test_logout_requires_auth(client: AsyncClient):
    response = await client.post("/api/users/logout")
    assert response.status_code == 401


async def test_change_password(client: AsyncClient, auth_headers: dict):
    old_cookie = client.cookies.get("refreshToken")

    response = await client.put(
        "/api/users/password",
        json={"currentPassword": "password123!", "newPassword": "newpass456!"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Password changed"}

    # Refresh token was revoked.
    client.cookies.clear()
    client.cookies.set("refreshToken", old_cookie)
    assert (await client.post(REFRESH)).status_code == 401

    assert (await client.post(LOGIN, json={"email": "test@example.com", "password": "password123!"})).status_code == 401
    assert (await client.post(LOGIN, json={"email": "test@example.com", "password": "newpass456!"})).status_code == 200


async def test_change_password_wrong_current(client: AsyncClient, auth_headers: dict):
    response = await client.put(
        "/api/users/password",
        json={"currentPassword": "notmypass1!", "newPassword": "newpass456!"},
        headers=auth_headers,
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Current password is incorrect"


async def test_withdraw_deletes_account_and_resumes(
    client: AsyncClient, auth_headers: dict, resume: dict, object_store
):
    upload = await client.post(
        f"/api/resumes/{resume['id']}/portfolios",
        files={"file": ("work.pdf", b"%PDF-1.4 sample", "application/pdf")},
        headers=auth_headers,
    )
    assert upload.status_code == 201
    assert object_store.objects

    response = await client.delete("/api/users/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted"}
    assert object_store.objects == {}

    assert (await client.get("/api/users/me", headers=auth_headers)).status_code == 401
    response = await client.post(LOGIN, json={"email": "test@example.com", "password": "password123!"})
    assert response.status_code == 401

    # The email can be registered again.
    response = await client.post(
        REGISTER, json={"email": "test@example.com", "name": "Test User", "password": "password123!"}
    )
    assert response.status_code == 201



async def test_withdraw_user_without_resumes(client: AsyncClient, auth_headers: dict, object_store):
    response = await client.delete("/api/users/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted"}
    assert object_store.delete_attempts == []

    response = await client.post(LOGIN, json={"email": "test@example.com", "password": "password123!"})
    assert response.status_code == 401
