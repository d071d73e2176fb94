"""Tests for health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from main import app


class TestHealthCheck:
    """Tests for basic health check endpoint."""

    def test_health_check_returns_success(self) -> None:
        client = TestClient(app)
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "healthy"
        assert data["data"]["message"] == "TaskPilot API is running"
        assert data["message"] == "Health check successful"

    def test_health_check_response_structure(self) -> None:
        """Test health check response matches ApiResponse schema."""
        client = TestClient(app)
        data = client.get("/api/v1/health").json()

        assert set(data) >= {"success", "data", "message"}
        assert isinstance(data["data"], dict)
