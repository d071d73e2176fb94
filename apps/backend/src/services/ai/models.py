"""Domain models for tier selection, invocation and escalation.

This module holds the explicit, typed contract objects passed between the
pipeline stages:

* TierDecision      - which tier to start at, why, and the capability
  identifier to use for each provider.
* InvocationPayload - the prompt-shaping inputs of one logical request.
* EscalationResult  - the final response plus the tier/provider/model that
  actually produced it (reported for cost monitoring).

Keeping these as small dataclasses prevents ad hoc dict construction from
drifting between the controller, the invoker and the API layer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Generic, TypeVar

from schemas.tasks import TaskRecord


ResponseT = TypeVar("ResponseT")


class Provider(StrEnum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class ModelTier(StrEnum):
    ECONOMY = "economy"
    ADVANCED = "advanced"


class InvocationKind(StrEnum):
    QUERY = "query"
    EXTRACTION = "extract"


@dataclass(slots=True, frozen=True)
class TierDecision:
    """Chosen tier with its justification and per-provider identifiers."""

    tier: ModelTier
    reason: str
    models: dict[Provider, str]

    def model_for(self, provider: Provider) -> str:
        return self.models[provider]


@dataclass(slots=True)
class InvocationPayload:
    """Prompt-shaping inputs for a single logical request."""

    text: str
    corpus: Sequence[TaskRecord] = ()
    today: date | None = None
    user_id: str = "anonymous"


@dataclass(slots=True)
class EscalationResult(Generic[ResponseT]):  # noqa: UP046
    """Final response of a logical request and where it came from."""

    response: ResponseT
    tier_used: ModelTier
    provider: Provider
    model_name: str
    initial_decision: TierDecision
    escalated: bool = False
    escalation_reason: str | None = None
    failovers: list[str] = field(default_factory=list)
