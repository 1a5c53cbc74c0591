"""
Shared fixtures: a throwaway SQLite store per test, an ASGI client bound to it,
and session headers for two independent users.
"""

import os

os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport

from dashboard.database import Database
from dashboard.main import app
from dashboard.services.auth_service import issue_session_token
from dashboard.services.llm_service import get_llm_service

ALICE = "user-alice"
BOB = "user-bob"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}")
    assert await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def fake_llm():
    llm = AsyncMock()
    llm.generate_headline_alternatives.return_value = (
        "Save 50% Today Only\nYour Summer Deal Is Here\nDon't Miss Out: Half Price Ends Tonight"
    )
    return llm


@pytest.fixture
async def client(database, fake_llm):
    app.state.database = database
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def session_headers(user_id: str, **claims) -> dict:
    return {"Authorization": f"Bearer {issue_session_token(user_id, **claims)}"}


@pytest.fixture
def alice():
    return session_headers(ALICE, name="Alice", email="alice@example.com", login_method="oauth")


@pytest.fixture
def bob():
    return session_headers(BOB, name="Bob", email="bob@example.com", login_method="oauth")


@pytest.fixture
async def integration(client, alice):
    response = await client.post(
        "/api/integrations", headers=alice,
        json={"platform": "mailchimp", "name": "Newsletter", "access_token": "tok-123"},
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
async def campaign(client, alice, integration):
    response = await client.post(
        "/api/campaigns", headers=alice,
        json={
            "name": "Summer Sale",
            "campaign_type": "email",
            "integration_id": integration["id"],
            "budget": 1000,
        },
    )
    assert response.status_code == 200
    return response.json()
