"""
Smoke tests for the health endpoint.
"""

from unittest.mock import AsyncMock, patch

import pytest

pytestmark = pytest.mark.asyncio


class TestHealthEndpoint:
    async def test_healthy(self, api_client) -> None:
        with patch("trustcrawler.api.routes.health.check_database_health", new=AsyncMock(return_value=True)):
            response = await api_client().get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert "version" in data

    async def test_database_down(self, api_client) -> None:
        with patch("trustcrawler.api.routes.health.check_database_health", new=AsyncMock(return_value=False)):
            response = await api_client().get("/health")

        assert response.status_code == 503
        assert response.json() == {
            "status": "degraded",
            "version": response.json()["version"],
            "database": "unavailable",
        }
