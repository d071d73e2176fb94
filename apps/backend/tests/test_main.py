"""
Tests for the main module.
"""


def test_read_root(client):
    """Test the root endpoint returns the expected response."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "TaskPilot API"}


def test_docs_are_served_under_api_prefix(client):
    response = client.get("/api/v1/docs")
    assert response.status_code == 200
    assert "TaskPilot API Docs" in response.text
