"""Domain exceptions for the natural-language task pipeline.

The taxonomy separates the two reasons a remote call can go wrong so callers
can react differently:

* ``ProviderUnavailable`` - the provider could not answer (timeout, auth,
  rate limit, 5xx). Triggers same-tier failover to the other provider.
* ``MalformedResponse`` - the provider answered but the payload does not fit
  the expected schema. Never retried inside the pipeline.

``NoProviderAvailable`` is raised once every configured provider has failed
for a request and ``PersistenceFailed`` wraps storage failures that happen
after a successful extraction. Each exception carries a stable `error_code`
for logging and the HTTP error envelope.

Low confidence and suspicious results are not errors; they are returned as
``ValidationVerdict`` values by ``services.ai.validator``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PipelineError(Exception):
    """Base class for task pipeline domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class MalformedResponse(PipelineError):
    def __init__(
        self,
        message: str = "Provider response did not match the expected schema",
        *,
        provider: str | None = None,
        model_name: str | None = None,
    ) -> None:
        super().__init__(message=message, error_code="malformed_response")
        self.provider = provider
        self.model_name = model_name


class ProviderUnavailable(PipelineError):
    def __init__(
        self,
        message: str = "Inference provider is unavailable",
        *,
        provider: str | None = None,
        model_name: str | None = None,
        reason_code: str = "unknown",
    ) -> None:
        super().__init__(message=message, error_code="provider_unavailable")
        self.provider = provider
        self.model_name = model_name
        self.reason_code = reason_code


class NoProviderAvailable(PipelineError):
    def __init__(
        self,
        message: str = "No inference provider could serve the request",
        *,
        failures: list[ProviderUnavailable] | None = None,
    ) -> None:
        super().__init__(message=message, error_code="no_provider")
        self.failures = list(failures or [])


class PersistenceFailed(PipelineError):
    def __init__(self, message: str = "Failed to persist extracted tasks") -> None:
        super().__init__(message=message, error_code="persistence_failed")
