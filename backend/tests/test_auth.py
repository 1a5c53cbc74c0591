"""
Tests for session resolution, auto-registration, whoami and logout.
"""

import os
from datetime import timedelta

import pytest
from unittest.mock import patch

from dashboard import repository
from dashboard.config import get_settings
from dashboard.database import Database
from dashboard.main import app
from dashboard.models import UserRole
from dashboard.services.auth_service import decode_session_token, issue_session_token

from conftest import ALICE, session_headers

pytestmark = pytest.mark.anyio


async def test_token_round_trip():
    claims = decode_session_token(issue_session_token("u1", name="Ada"))
    assert claims["sub"] == "u1"
    assert claims["name"] == "Ada"


async def test_expired_or_forged_token_is_rejected():
    assert decode_session_token(issue_session_token("u1", expires_in=timedelta(seconds=-5))) is None
    assert decode_session_token("not-a-jwt") is None


async def test_me_without_session_is_null(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json() is None


async def test_me_registers_user_from_claims(client, database, alice):
    response = await client.get("/api/auth/me", headers=alice)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == ALICE
    assert data["name"] == "Alice"
    assert data["email"] == "alice@example.com"
    assert data["role"] == "user"

    stored = await repository.get_user(database, ALICE)
    assert stored.login_method == "oauth"


async def test_owner_is_registered_as_admin(client, database):
    with patch.dict(os.environ, {"OWNER_ID": "owner-1"}, clear=False):
        get_settings.cache_clear()
        response = await client.get("/api/auth/me", headers=session_headers("owner-1"))
    get_settings.cache_clear()

    assert response.json()["role"] == "admin"
    assert (await repository.get_user(database, "owner-1")).role == UserRole.ADMIN


async def test_session_cookie_is_accepted(client):
    cookie = f"{get_settings().session_cookie_name}={issue_session_token(ALICE)}"
    response = await client.get("/api/campaigns", headers={"Cookie": cookie})
    assert response.status_code == 200
    assert response.json() == []


async def test_protected_routes_require_session(client):
    assert (await client.get("/api/campaigns")).status_code == 401
    assert (await client.get("/api/alerts/unread")).status_code == 401
    response = await client.get("/api/integrations", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


async def test_logout_clears_cookie(client):
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}
    set_cookie = response.headers["set-cookie"]
    assert get_settings().session_cookie_name in set_cookie
    assert "Max-Age=0" in set_cookie


async def test_session_resolves_from_claims_when_store_is_down(client):
    app.state.database = Database("")
    response = await client.get("/api/auth/me", headers=session_headers(ALICE, name="Alice"))
    assert response.status_code == 200
    assert response.json()["id"] == ALICE
    assert response.json()["name"] == "Alice"
    assert response.json()["role"] == "user"

    with patch.dict(os.environ, {"OWNER_ID": "owner-1"}, clear=False):
        get_settings.cache_clear()
        owner = await client.get("/api/auth/me", headers=session_headers("owner-1"))
    get_settings.cache_clear()
    assert owner.json()["role"] == "admin"
