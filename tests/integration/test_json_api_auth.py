"""Authentication tests for the service-token protected endpoint."""

import pytest
from httpx import AsyncClient

from tests.integration.json_api_helpers import auth_headers


@pytest.mark.asyncio
async def test_snapshot_missing_auth_header(integration_environment):
    client: AsyncClient = integration_environment["client"]
    response = await client.post("/api/v1/metrics/snapshots")
    assert response.status_code == 401
    data = response.json()
    assert data["meta"]["error"]["code"] == 4001
    assert data["payload"] is None


@pytest.mark.asyncio
async def test_snapshot_invalid_auth_format(integration_environment):
    client: AsyncClient = integration_environment["client"]
    response = await client.post("/api/v1/metrics/snapshots", headers={"Authorization": "InvalidFormat"})
    assert response.status_code == 401
    assert response.json()["meta"]["error"]["code"] == 4001


@pytest.mark.asyncio
async def test_snapshot_wrong_token(integration_environment):
    client: AsyncClient = integration_environment["client"]
    response = await client.post("/api/v1/metrics/snapshots", headers={"Authorization": "Bearer wrong-token"})
    assert response.status_code == 401
    assert response.json()["meta"]["error"]["code"] == 4002


@pytest.mark.asyncio
async def test_snapshot_token_signed_with_other_secret(integration_environment):
    client: AsyncClient = integration_environment["client"]
    headers = auth_headers({"json_api_secret": "other-secret", "json_api_algorithm": "HS256"})
    response = await client.post("/api/v1/metrics/snapshots", headers=headers)
    assert response.status_code == 401
    assert response.json()["meta"]["error"]["code"] == 4002


@pytest.mark.asyncio
async def test_snapshot_expired_token(integration_environment):
    client: AsyncClient = integration_environment["client"]
    headers = auth_headers(integration_environment, expire_minutes=-5)
    response = await client.post("/api/v1/metrics/snapshots", headers=headers)
    assert response.status_code == 401
    assert response.json()["meta"]["error"]["code"] == 4005


@pytest.mark.asyncio
async def test_read_endpoints_do_not_require_token(integration_environment):
    client: AsyncClient = integration_environment["client"]
    assert (await client.get("/api/v1/metrics")).status_code == 200
    assert (await client.get("/api/v1/metrics/audience")).status_code == 200
