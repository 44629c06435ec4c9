"""
User API tests - signup/signin/signout, password reset and permission updates.
"""

from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.guards import Permission
from app.core.security import verify_password
from app.db.models import User
from conftest import bearer


async def _user(session, email: str) -> User:
    result = await session.execute(
        select(User).where(User.email == email).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_signup_normalizes_email_and_grants_defaults(client: AsyncClient, session):
    response = await client.post(
        "/api/v1/users/signup",
        json={"email": "New.Person@Example.com", "name": "New Person", "password": "s3cret"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "new.person@example.com"
    assert data["user"]["permissions"] == ["USER", "ITEMCREATE", "ITEMUPDATE", "ITEMDELETE"]
    assert data["access_token"]
    assert "token=" in response.headers["set-cookie"]
    assert "httponly" in response.headers["set-cookie"].lower()

    user = await _user(session, "new.person@example.com")
    assert user.hashed_password != "s3cret"
    assert verify_password("s3cret", user.hashed_password)


@pytest.mark.asyncio
async def test_signup_duplicate_email(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/users/signup",
        json={"email": "TEST@example.com", "name": "Again", "password": "password123"},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "EMAIL_TAKEN"


@pytest.mark.asyncio
async def test_signin_is_case_insensitive(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/users/signin", json={"email": "Test@Example.com", "password": "password123"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == test_user.id
    assert "token=" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_signin_wrong_password(client: AsyncClient, test_user):
    response = await client.post("/api/v1/users/signin", json={"email": "test@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "INVALID_CREDENTIALS", "detail": "Invalid password!"}


@pytest.mark.asyncio
async def test_signin_unknown_email(client: AsyncClient):
    response = await client.post("/api/v1/users/signin", json={"email": "ghost@example.com", "password": "x"})
    assert response.status_code == 401
    assert "ghost@example.com" in response.json()["detail"]


@pytest.mark.asyncio
async def test_signout_clears_cookie(client: AsyncClient):
    response = await client.post("/api/v1/users/signout")
    assert response.status_code == 200
    assert response.json() == {"message": "Signed out successfully"}
    cookie = response.headers["set-cookie"]
    assert cookie.startswith('token=""') or "Max-Age=0" in cookie


@pytest.mark.asyncio
async def test_request_reset_sets_token_and_notifies(client: AsyncClient, session, notifier, test_user):
    response = await client.post("/api/v1/users/request-reset", json={"email": "test@example.com"})
    assert response.status_code == 200
    assert response.json() == {"message": "Success!"}

    user = await _user(session, "test@example.com")
    assert len(user.reset_token) == 40
    assert user.reset_token_expiry is not None
    assert notifier.sent == [("test@example.com", user.reset_token)]


@pytest.mark.asyncio
async def test_request_reset_unknown_email(client: AsyncClient, notifier):
    response = await client.post("/api/v1/users/request-reset", json={"email": "ghost@example.com"})
    assert response.status_code == 404
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_reset_password_flow(client: AsyncClient, session, notifier, test_user):
    await client.post("/api/v1/users/request-reset", json={"email": "test@example.com"})
    _, token = notifier.sent[0]

    response = await client.post(
        "/api/v1/users/reset-password",
        json={"reset_token": token, "password": "brand-new", "confirm_password": "brand-new"},
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == test_user.id
    assert "token=" in response.headers["set-cookie"]

    user = await _user(session, "test@example.com")
    assert user.reset_token is None
    assert user.reset_token_expiry is None
    assert verify_password("brand-new", user.hashed_password)

    again = await client.post(
        "/api/v1/users/reset-password",
        json={"reset_token": token, "password": "other", "confirm_password": "other"},
    )
    assert again.status_code == 400
    assert again.json()["error"] == "INVALID_OR_EXPIRED_TOKEN"


@pytest.mark.asyncio
async def test_reset_password_mismatch(client: AsyncClient):
    response = await client.post(
        "/api/v1/users/reset-password",
        json={"reset_token": "whatever", "password": "one", "confirm_password": "two"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "PASSWORD_MISMATCH"


@pytest.mark.asyncio
async def test_reset_password_expired_token(client: AsyncClient, session, test_user):
    test_user.reset_token = "a" * 40
    test_user.reset_token_expiry = datetime.now(timezone.utc) - timedelta(minutes=1)
    await session.flush()

    response = await client.post(
        "/api/v1/users/reset-password",
        json={"reset_token": "a" * 40, "password": "new-pass", "confirm_password": "new-pass"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_OR_EXPIRED_TOKEN"


@pytest.mark.asyncio
async def test_update_permissions_requires_auth(client: AsyncClient, test_user):
    response = await client.put(
        "/api/v1/users/permissions", json={"user_id": test_user.id, "permissions": ["ADMIN"]}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_permissions_requires_admin_or_permissionupdate(client: AsyncClient, session, test_user, other_user):
    response = await client.put(
        "/api/v1/users/permissions",
        headers=bearer(test_user),
        json={"user_id": other_user.id, "permissions": ["ADMIN"]},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"
    assert "ADMIN" not in (await _user(session, "other@example.com")).permissions


@pytest.mark.asyncio
async def test_admin_replaces_permissions(client: AsyncClient, session, admin_user, other_user):
    response = await client.put(
        "/api/v1/users/permissions",
        headers=bearer(admin_user),
        json={"user_id": other_user.id, "permissions": ["USER", "ITEMCREATE", "USER"]},
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["USER", "ITEMCREATE"]
    assert (await _user(session, "other@example.com")).permissions == ["USER", "ITEMCREATE"]


@pytest.mark.asyncio
async def test_permissionupdate_holder_may_update(client: AsyncClient, make_user, other_user):
    manager = await make_user("manager@example.com", permissions=[Permission.PERMISSIONUPDATE])
    response = await client.put(
        "/api/v1/users/permissions",
        headers=bearer(manager),
        json={"user_id": other_user.id, "permissions": []},
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == []


@pytest.mark.asyncio
async def test_update_permissions_unknown_target(client: AsyncClient, admin_user):
    response = await client.put(
        "/api/v1/users/permissions",
        headers=bearer(admin_user),
        json={"user_id": 9999, "permissions": ["USER"]},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_permissions_rejects_unknown_tag(client: AsyncClient, admin_user, other_user):
    response = await client.put(
        "/api/v1/users/permissions",
        headers=bearer(admin_user),
        json={"user_id": other_user.id, "permissions": ["SUPERUSER"]},
    )
    assert response.status_code == 422
