"""Health endpoint tests."""

import datetime

import pytest
from httpx import AsyncClient

from shortener.enums import HealthStatus


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.OK.value
    assert datetime.datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
