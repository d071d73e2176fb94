"""Shared test fixtures for pytest.

We pin ENVIRONMENT=test and drop provider keys early so importing modules
that read settings never picks up a developer's real credentials or .env
files during tests.
"""

import os
from collections.abc import Callable, Generator, Sequence

import pytest
from fastapi.testclient import TestClient
from pydantic_ai import models


os.environ["ENVIRONMENT"] = "test"
os.environ.pop("ANTHROPIC_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False

from core.config import Settings, get_settings
from dependencies.pipeline import reset_pipeline_singletons
from main import app
from services.ai.escalation import EscalationController
from services.ai.models import Provider
from services.ai.usage import InMemoryUsageTracker

from pipeline_fakes import FakeInvoker, Handler


@pytest.fixture
def test_settings() -> Settings:
    """Settings with both providers configured and default thresholds."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        ENVIRONMENT="test",
        ANTHROPIC_API_KEY="test-anthropic-key",  # pragma: allowlist secret
        OPENAI_API_KEY="test-openai-key",  # pragma: allowlist secret
    )


@pytest.fixture
def usage_tracker() -> InMemoryUsageTracker:
    return InMemoryUsageTracker()


@pytest.fixture
def make_controller(
    test_settings: Settings, usage_tracker: InMemoryUsageTracker
) -> Callable[..., EscalationController]:
    """Factory for an EscalationController around a FakeInvoker handler."""

    def _make(
        handler: Handler | FakeInvoker,
        providers: Sequence[Provider] = (Provider.ANTHROPIC, Provider.OPENAI),
    ) -> EscalationController:
        invoker = handler if isinstance(handler, FakeInvoker) else FakeInvoker(handler)
        return EscalationController(
            invoker,
            usage_tracker=usage_tracker,
            settings=test_settings,
            provider_source=lambda: list(providers),
        )

    return _make


@pytest.fixture(autouse=True)
def _fresh_singletons() -> Generator[None, None, None]:
    get_settings.cache_clear()
    reset_pipeline_singletons()
    yield
    app.dependency_overrides.clear()
    reset_pipeline_singletons()
    get_settings.cache_clear()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client
