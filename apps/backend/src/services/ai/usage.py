"""Per-user provider usage counters."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from services.ai.models import InvocationKind, ModelTier, Provider


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UsageCounters:
    total_requests: int = 0
    extract_requests: int = 0
    query_requests: int = 0
    anthropic_requests: int = 0
    openai_requests: int = 0
    economy_requests: int = 0
    advanced_requests: int = 0
    escalations: int = 0
    last_anthropic_model: str | None = None
    last_openai_model: str | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class InMemoryUsageTracker:
    """Process-local usage store.

    ``record`` is best-effort: failures are logged and swallowed so usage
    bookkeeping never breaks a request that already has an answer.
    """

    _counters: dict[str, UsageCounters] = field(default_factory=dict)

    def record(
        self,
        *,
        user_id: str,
        kind: InvocationKind,
        provider: Provider,
        model_name: str,
        tier: ModelTier,
        escalated: bool = False,
    ) -> None:
        try:
            counters = self._counters.setdefault(user_id, UsageCounters())
            counters.total_requests += 1
            if kind is InvocationKind.EXTRACTION:
                counters.extract_requests += 1
            else:
                counters.query_requests += 1

            if provider is Provider.ANTHROPIC:
                counters.anthropic_requests += 1
                counters.last_anthropic_model = model_name
            else:
                counters.openai_requests += 1
                counters.last_openai_model = model_name

            if tier is ModelTier.ADVANCED:
                counters.advanced_requests += 1
            else:
                counters.economy_requests += 1
            if escalated:
                counters.escalations += 1
            counters.updated_at = datetime.now(UTC)
        except Exception as e:  # noqa: BLE001
            logger.error("Error tracking usage for %s: %s", user_id, e)

    def summary(self, user_id: str) -> dict[str, Any]:
        counters = self._counters.get(user_id) or UsageCounters()
        return asdict(counters)

    def reset(self) -> None:
        self._counters.clear()
