"""Principal extraction tests."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

from confvault.auth import is_authorized_email
from confvault.config import settings

SETTINGS = "confvault.auth.settings"


def test_allowlist_matches_emails_and_domains():
    with patch(SETTINGS, settings.model_copy(update={
        "authorized_emails": ["Ops@Example.com"],
        "authorized_domains": ["corp.io"],
    })):
        assert is_authorized_email("ops@example.com")
        assert is_authorized_email("anyone@corp.io")
        assert not is_authorized_email("anyone@example.com")
        assert not is_authorized_email(None)


@pytest.mark.asyncio
async def test_allowlist_enforced_when_configured(client: AsyncClient):
    restricted = settings.model_copy(update={"authorized_domains": ["corp.io"]})
    with patch(SETTINGS, restricted):
        resp = await client.get("/api/applications/", headers={"X-Principal-Id": "u1"})
        assert resp.status_code == 401

        resp = await client.get(
            "/api/applications/",
            headers={"X-Principal-Id": "u1", "X-Principal-Email": "u1@elsewhere.org"},
        )
        assert resp.status_code == 401

        resp = await client.get(
            "/api/applications/",
            headers={"X-Principal-Id": "u1", "X-Principal-Email": "u1@corp.io"},
        )
        assert resp.status_code == 200


@pytest.mark.asyncio
async def test_every_route_fails_closed(client: AsyncClient):
    for method, path in (
        ("GET", "/api/applications/x"),
        ("DELETE", "/api/applications/x"),
        ("GET", "/api/applications/x/environments"),
        ("GET", "/api/environments/x"),
        ("GET", "/api/secrets/x"),
        ("DELETE", "/api/variables/x"),
        ("GET", "/api/applications/x/members"),
    ):
        resp = await client.request(method, path)
        assert resp.status_code == 401, (method, path)
