"""
tests/test_users.py
Tests for the signed-in user's profile and current-user resolution.
"""

import pytest
from httpx import AsyncClient

from shared.utils.security import create_access_token


@pytest.mark.asyncio
async def test_get_user_profile(client: AsyncClient, business_user, auth_headers):
    response = await client.get("/api/users/me", headers=auth_headers(business_user))
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == business_user.email
    assert data["name"] == "Business Owner"
    assert "password" not in data


@pytest.mark.asyncio
async def test_get_user_requires_auth(client: AsyncClient):
    response = await client.get("/api/users/me")
    assert response.status_code == 401
    assert response.json() == {"message": "No token provided"}


@pytest.mark.asyncio
async def test_get_user_rejects_garbage_token(client: AsyncClient, business_user):
    response = await client.get(
        "/api/users/me",
        headers={"Authorization": "Bearer not-a-jwt", "x-user-id": business_user.id},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_user_requires_matching_user_id(
    client: AsyncClient, business_user, admin_user, auth_headers
):
    headers = {**auth_headers(business_user), "x-user-id": admin_user.id}
    response = await client.get("/api/users/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_user_requires_user_id_header(client: AsyncClient, business_user, auth_headers):
    headers = auth_headers(business_user)
    del headers["x-user-id"]
    response = await client.get("/api/users/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_user_unknown_subject(client: AsyncClient):
    token = create_access_token(user_id="missing-user", role="business", email="gone@example.com")
    response = await client.get(
        "/api/users/me",
        headers={"Authorization": f"Bearer {token}", "x-user-id": "missing-user"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_user_name(client: AsyncClient, business_user, auth_headers):
    response = await client.put(
        "/api/users/me",
        headers=auth_headers(business_user),
        json={"name": "Updated Name"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Updated Name"


@pytest.mark.asyncio
async def test_update_user_phone(client: AsyncClient, business_user, auth_headers):
    response = await client.put(
        "/api/users/me",
        headers=auth_headers(business_user),
        json={"phone": "+919999988888"},
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "+919999988888"


@pytest.mark.asyncio
async def test_update_empty_body_is_noop(client: AsyncClient, business_user, auth_headers):
    response = await client.put("/api/users/me", headers=auth_headers(business_user), json={})
    assert response.status_code == 200
    assert response.json()["email"] == business_user.email


@pytest.mark.asyncio
async def test_update_ignores_role_and_email(client: AsyncClient, business_user, auth_headers):
    response = await client.put(
        "/api/users/me",
        headers=auth_headers(business_user),
        json={"role": "admin", "email": "taken@example.com"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "business"
    assert data["email"] == business_user.email
