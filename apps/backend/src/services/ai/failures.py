"""Deterministic provider failure classification for same-tier failover."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
from pydantic_ai.exceptions import ModelHTTPError


_PROVIDER_MODULE_PREFIXES: tuple[str, ...] = (
    "anthropic",
    "openai",
    "httpx",
    "httpcore",
    "pydantic_ai",
)
_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "invalid api key",
    "invalid x-api-key",
    "authentication",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "rate_limit",
    "overloaded",
    "quota",
)
_TIMEOUT_PATTERNS: tuple[str, ...] = ("timed out", "timeout")
_NETWORK_PATTERNS: tuple[str, ...] = (
    "connection",
    "network",
    "temporarily unavailable",
    "could not resolve host",
)


@dataclass(slots=True, frozen=True)
class ProviderFailure:
    """Normalized provider failure."""

    reason_code: str
    status_code: int | None = None
    matched_pattern: str | None = None


def _from_status(status_code: int) -> ProviderFailure:
    if status_code in (401, 403):
        reason = "auth"
    elif status_code == 404:
        reason = "model_not_available"
    elif status_code == 408:
        reason = "timeout"
    elif status_code == 429:
        reason = "rate_limit"
    elif status_code >= 500:
        reason = "server_error"
    else:
        reason = "client_error"
    return ProviderFailure(reason_code=reason, status_code=status_code)


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None


def _is_provider_exception(exc: BaseException) -> bool:
    module = type(exc).__module__ or ""
    return module.startswith(_PROVIDER_MODULE_PREFIXES)


def classify_provider_failure(exc: BaseException) -> ProviderFailure | None:
    """Classify ``exc`` as a provider-side failure, or return None.

    None means the exception did not come from the provider boundary and must
    propagate unchanged.
    """
    if isinstance(exc, ModelHTTPError):
        return _from_status(exc.status_code)
    if isinstance(exc, httpx.HTTPStatusError):
        return _from_status(exc.response.status_code)
    if isinstance(exc, httpx.TimeoutException | asyncio.TimeoutError | TimeoutError):
        return ProviderFailure(reason_code="timeout")
    if isinstance(exc, httpx.TransportError | ConnectionError):
        return ProviderFailure(reason_code="network")

    if not _is_provider_exception(exc):
        return None

    # SDK errors that were not wrapped by pydantic-ai
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return _from_status(status_code)

    haystack = f"{type(exc).__name__} {exc}".lower()
    for reason, patterns in (
        ("auth", _AUTH_PATTERNS),
        ("rate_limit", _RATE_LIMIT_PATTERNS),
        ("timeout", _TIMEOUT_PATTERNS),
        ("network", _NETWORK_PATTERNS),
    ):
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return ProviderFailure(reason_code=reason, matched_pattern=pattern)
    return ProviderFailure(reason_code="provider_error")
