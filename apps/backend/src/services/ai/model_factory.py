"""Centralized AI model factory for all inference calls.

This module is the single source of truth for turning a (provider, capability
identifier) pair into a pydantic-ai ``Model``. Both supported providers,
Anthropic and OpenAI, are interchangeable from the caller's point of view;
which ones are usable depends on the configured API keys.

Usage:
    from services.ai.model_factory import configured_providers, create_model

    for provider in configured_providers():
        model = create_model(provider, "claude-haiku-4-5-20251001")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider

from core.config import Settings, get_settings
from services.ai.models import Provider


# OpenAI reasoning models that support the reasoning_effort parameter
REASONING_MODELS = {
    "o1",
    "o1-mini",
    "o3",
    "o3-mini",
    "o4-mini",
    "gpt-5-mini",
    "gpt-5-nano",
}


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)


def is_provider_configured(
    provider: Provider, settings: Settings | None = None
) -> bool:
    """Check that the provider has credentials."""
    settings = settings or get_settings()
    if not settings.api_key_for(provider.value):
        logger.debug("%s API key not configured", provider.value)
        return False
    return True


def configured_providers(settings: Settings | None = None) -> list[Provider]:
    """Providers with credentials, in PROVIDER_PRIORITY order."""
    settings = settings or get_settings()
    providers = [
        Provider(name)
        for name in settings.PROVIDER_PRIORITY
        if is_provider_configured(Provider(name), settings)
    ]
    if not providers:
        logger.warning(
            "No inference provider configured. Set ANTHROPIC_API_KEY or "
            "OPENAI_API_KEY."
        )
    return providers


def _create_anthropic_model(
    model_name: str,
    settings: Settings,
    http_client: AsyncClient | None = None,
) -> Model:
    provider = AnthropicProvider(
        api_key=settings.ANTHROPIC_API_KEY,
        http_client=http_client,
    )
    return AnthropicModel(
        model_name,
        provider=provider,
        settings={
            "max_tokens": settings.INFERENCE_MAX_TOKENS,
            "timeout": settings.INFERENCE_TIMEOUT_SECONDS,
        },
    )


def _create_openai_model(
    model_name: str,
    settings: Settings,
    http_client: AsyncClient | None = None,
) -> Model:
    """Create an OpenAI chat model.

    For reasoning models (o-series, gpt-5 mini/nano), applies low reasoning
    effort for faster, cheaper responses.
    """
    provider = OpenAIProvider(
        api_key=settings.OPENAI_API_KEY,
        http_client=http_client,
    )
    model_settings: dict[str, Any] = {"timeout": settings.INFERENCE_TIMEOUT_SECONDS}
    if model_name in REASONING_MODELS:
        logger.debug("Applying low reasoning effort for reasoning model: %s", model_name)
        model_settings["openai_reasoning_effort"] = "low"
    return OpenAIChatModel(
        model_name,
        provider=provider,
        settings=model_settings,  # type: ignore[arg-type]
    )


def create_model(
    provider: Provider,
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    """Build the pydantic-ai model for ``provider`` and ``model_name``.

    Args:
        provider: Which remote provider to talk to.
        model_name: Capability identifier chosen by the tier selector.
        http_client: Optional HTTP client for custom retry or timeout logic.

    Raises:
        ValueError: if the provider has no credentials configured.
    """
    settings = get_settings()
    if not is_provider_configured(provider, settings):
        raise ValueError(f"Provider {provider.value!r} is not configured")

    if provider is Provider.ANTHROPIC:
        return _create_anthropic_model(model_name, settings, http_client)
    return _create_openai_model(model_name, settings, http_client)
