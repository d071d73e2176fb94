"""Tests for centralized error handling."""

import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from core.error_handler import StructuredLogger, get_correlation_id, set_correlation_id
from core.security_config import get_allowed_error_fields, is_sensitive_key
from dependencies.pipeline import get_intent_router
from main import app
from services.ai.exceptions import NoProviderAvailable


class TestSecurityConfiguration:
    """Test security configuration functionality."""

    def test_sensitive_key_detection(self):
        """Credentials and user-authored text are both sensitive."""
        sensitive_keys = [
            "api_key",
            "ANTHROPIC_API_KEY",
            "openai_api_key",
            "token",
            "access_token",
            "authorization",
            "password",
            "email",
            "text",
            "raw_text",
            "prompt",
            "context",
            "response",
            "draft_text",
        ]

        for key in sensitive_keys:
            assert is_sensitive_key(key), f"Key '{key}' should be detected as sensitive"

    def test_non_sensitive_key_detection(self):
        """Operational fields stay visible."""
        non_sensitive_keys = [
            "draft_id",
            "provider",
            "model",
            "tier",
            "reason",
            "reason_code",
            "error_code",
            "length",
            "status",
            "textual_summary",
        ]

        for key in non_sensitive_keys:
            assert not is_sensitive_key(key), (
                f"Key '{key}' should not be detected as sensitive"
            )

    def test_production_error_fields(self):
        allowed_fields = get_allowed_error_fields("production")

        assert allowed_fields == {"correlation_id", "type", "error_code"}

    def test_development_error_fields(self):
        allowed_fields = get_allowed_error_fields("development")

        expected_fields = {
            "correlation_id",
            "type",
            "error_code",
            "details",
            "traceback",
            "exception_type",
            "validation_errors",
        }
        assert expected_fields.issubset(allowed_fields)


class TestCorrelationId:
    """Test correlation ID functionality."""

    def test_get_correlation_id_generates_new_id(self):
        set_correlation_id(None)

        correlation_id = get_correlation_id()
        assert correlation_id is not None
        assert len(correlation_id) > 0

    def test_set_and_get_correlation_id(self):
        test_id = "test-correlation-id-123"
        set_correlation_id(test_id)

        assert get_correlation_id() == test_id


class TestStructuredLogger:
    """Test structured logging functionality."""

    def setup_method(self):
        self.logger = StructuredLogger("test_logger")

    def test_sanitize_data_redacts_task_text(self):
        sanitized = self.logger._sanitize_data(
            {
                "draft_id": "d-1",
                "text": "Call my doctor about the test results",
                "prompt": "Current date: ...",
                "length": 38,
            }
        )

        assert sanitized["draft_id"] == "d-1"
        assert sanitized["text"] == "[REDACTED]"
        assert sanitized["prompt"] == "[REDACTED]"
        assert sanitized["length"] == 38

    def test_sanitize_data_handles_nested_structures_with_lists(self):
        sanitized = self.logger._sanitize_data(
            {
                "request": {"provider": "openai", "api_key": "placeholder"},  # pragma: allowlist secret
                "candidates": [{"text": "Buy milk", "priority": "high"}],
            }
        )

        assert sanitized["request"]["provider"] == "openai"
        assert sanitized["request"]["api_key"] == "[REDACTED]"
        assert sanitized["candidates"][0]["text"] == "[REDACTED]"
        assert sanitized["candidates"][0]["priority"] == "high"

    def test_log_line_includes_correlation_id_and_fields(self, caplog):
        set_correlation_id("cid-42")
        with caplog.at_level(logging.INFO, logger="test_logger"):
            self.logger.info("Draft queued", draft_id="d-9", text="secret plans")

        assert "[cid-42] Draft queued" in caplog.text
        assert "draft_id=d-9" in caplog.text
        assert "secret plans" not in caplog.text

    def test_structured_data_attached_to_record(self, caplog):
        set_correlation_id("cid-7")
        with caplog.at_level(logging.INFO, logger="test_logger"):
            self.logger.info("Tier selected", tier="economy")

        record = caplog.records[-1]
        assert record.structured_data["correlation_id"] == "cid-7"
        assert record.structured_data["tier"] == "economy"


class TestIntegrationErrorHandling:
    """Test error handling integration with FastAPI."""

    def setup_method(self):
        self.client = TestClient(app)

    def test_correlation_id_in_response_headers(self):
        response = self.client.get("/api/v1/health")

        assert "X-Correlation-ID" in response.headers
        assert len(response.headers["X-Correlation-ID"]) > 0

    def test_custom_correlation_id_respected(self):
        custom_id = "custom-correlation-123"

        response = self.client.get(
            "/api/v1/health", headers={"X-Correlation-ID": custom_id}
        )

        assert response.headers["X-Correlation-ID"] == custom_id

    def test_validation_error_handled_centrally(self):
        response = self.client.post("/api/v1/ai/submit", json={"text": ""})

        assert response.status_code == 422
        assert "X-Correlation-ID" in response.headers
        error_data = response.json()
        assert error_data["success"] is False
        assert "correlation_id" in error_data["error"]

    @patch("core.error_handler.get_settings")
    def test_production_responses_no_sensitive_data_leak(self, mock_settings):
        mock_settings.return_value.ENVIRONMENT = "production"

        response = self.client.post(
            "/api/v1/ai/submit", json={"text": "", "password": "hunter2"}  # pragma: allowlist secret
        )
        error_obj = response.json().get("error", {})

        for field in ("details", "traceback", "exception_type", "validation_errors"):
            assert field not in error_obj
        assert set(error_obj) <= {"correlation_id", "type", "error_code"}
        assert "hunter2" not in response.text

    def test_pipeline_error_from_router_is_normalized(self):
        class FailingRouter:
            async def classify(self, text, corpus, *, user_id="anonymous", today=None):
                raise NoProviderAvailable("No inference provider configured")

        app.dependency_overrides[get_intent_router] = lambda: FailingRouter()

        response = self.client.post("/api/v1/ai/query", json={"text": "what's due?"})

        assert response.status_code == 503
        body = response.json()
        assert body["error"]["error_code"] == "no_provider"
        assert body["message"] == "No AI provider is currently available"


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    yield
    set_correlation_id(None)
