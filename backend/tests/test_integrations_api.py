"""
Tests for integration endpoints and token handling.
"""

import os

import pytest
from cryptography.fernet import Fernet
from unittest.mock import patch

from dashboard import repository
from dashboard.config import get_settings
from dashboard.crypto import get_token_cipher

pytestmark = pytest.mark.anyio


@pytest.fixture
def encryption_key():
    key = Fernet.generate_key().decode()
    with patch.dict(os.environ, {"ENCRYPTION_KEY": key}, clear=False):
        get_settings.cache_clear()
        get_token_cipher.cache_clear()
        yield key
    get_settings.cache_clear()
    get_token_cipher.cache_clear()


async def test_create_hides_tokens(integration):
    assert integration["platform"] == "mailchimp"
    assert integration["is_active"] is True
    assert "access_token" not in integration
    assert "refresh_token" not in integration


async def test_tokens_are_encrypted_at_rest(client, database, alice, encryption_key):
    response = await client.post("/api/integrations", headers=alice, json={
        "platform": "facebook_ads", "name": "Ads", "access_token": "secret-token", "account_id": "act_1",
    })
    stored = await repository.get_integration(database, response.json()["id"])

    assert stored.access_token != "secret-token"
    assert Fernet(encryption_key.encode()).decrypt(stored.access_token.encode()).decode() == "secret-token"
    assert stored.refresh_token is None
    assert stored.account_id == "act_1"


async def test_list_and_get_are_scoped(client, alice, bob, integration):
    assert [i["id"] for i in (await client.get("/api/integrations", headers=alice)).json()] == [integration["id"]]
    assert (await client.get("/api/integrations", headers=bob)).json() == []
    assert (await client.get(f"/api/integrations/{integration['id']}", headers=alice)).json()["name"] == "Newsletter"
    assert (await client.get(f"/api/integrations/{integration['id']}", headers=bob)).json() is None


async def test_unknown_platform_is_rejected(client, alice):
    response = await client.post("/api/integrations", headers=alice, json={"platform": "myspace", "name": "Old"})
    assert response.status_code == 422
