"""
Tests for registration, login and token handling.
"""
from datetime import timedelta

from heartcart.core.security import create_access_token, decode_access_token, hash_password, verify_password


REGISTRATION = {
    "username": "thandi",
    "email": "Thandi@Example.com",
    "password": "supersecret1",
    "fullName": "Thandi Mokoena",
    "phoneNumber": "+27 82 000 0000",
}


def test_password_hashing_round_trip():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "someone"}, expires_delta=timedelta(seconds=-1))

    assert decode_access_token(token) is None


async def test_register_returns_token_and_user(async_client):
    response = await async_client.post("/api/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()
    assert data["tokenType"] == "bearer"
    assert data["accessToken"]
    assert data["expiresIn"] == 24 * 3600
    assert data["user"]["username"] == "thandi"
    assert data["user"]["email"] == "thandi@example.com"
    assert data["user"]["fullName"] == "Thandi Mokoena"
    assert data["user"]["role"] == "user"
    assert "passwordHash" not in data["user"]


async def test_register_duplicate_username_conflicts(async_client):
    await async_client.post("/api/auth/register", json=REGISTRATION)

    response = await async_client.post(
        "/api/auth/register", json={**REGISTRATION, "email": "other@example.com"}
    )

    assert response.status_code == 409
    assert response.json()["type"] == "ConflictError"


async def test_register_duplicate_email_conflicts(async_client):
    await async_client.post("/api/auth/register", json=REGISTRATION)

    response = await async_client.post(
        "/api/auth/register", json={**REGISTRATION, "username": "thandi2"}
    )

    assert response.status_code == 409


async def test_register_rejects_short_password(async_client):
    response = await async_client.post(
        "/api/auth/register", json={**REGISTRATION, "password": "short"}
    )

    assert response.status_code == 422


async def test_login_with_username_or_email(async_client):
    await async_client.post("/api/auth/register", json=REGISTRATION)

    by_name = await async_client.post(
        "/api/auth/login", json={"username": "thandi", "password": "supersecret1"}
    )
    by_email = await async_client.post(
        "/api/auth/login", json={"username": "THANDI@example.com", "password": "supersecret1"}
    )

    assert by_name.status_code == 200
    assert by_email.status_code == 200
    assert by_name.json()["user"]["lastLogin"] is not None


async def test_login_wrong_password(async_client):
    await async_client.post("/api/auth/register", json=REGISTRATION)

    response = await async_client.post(
        "/api/auth/login", json={"username": "thandi", "password": "not-the-password"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


async def test_me_requires_token(async_client):
    response = await async_client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_me_rejects_garbage_token(async_client):
    response = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401


async def test_me_returns_current_user(async_client, user, user_headers):
    response = await async_client.get("/api/auth/me", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["id"] == str(user.id)
    assert response.json()["username"] == "shopper"
