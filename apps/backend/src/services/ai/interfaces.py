"""Service interfaces for the inference pipeline.

This module defines protocols/interfaces that enable clean dependency injection
between the pipeline stages, so controllers and queues can be exercised with
in-process fakes instead of real providers.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any, Protocol

from schemas.ai import InferenceResponse, QueryDetectionResult, TaskExtractionResult
from schemas.tasks import TaskCandidate, TaskRecord
from services.ai.models import (
    EscalationResult,
    InvocationKind,
    InvocationPayload,
    ModelTier,
    Provider,
)


class InferenceInvokerProtocol(Protocol):
    """Protocol for a single structured call to one provider."""

    async def invoke(
        self,
        kind: InvocationKind,
        payload: InvocationPayload,
        provider: Provider,
        model_name: str,
    ) -> InferenceResponse:
        """Perform the remote call and return the parsed response."""
        ...


class EscalatingRunnerProtocol(Protocol):
    """Protocol for the economy -> advanced escalation state machine."""

    async def run_with_escalation(
        self, kind: InvocationKind, payload: InvocationPayload
    ) -> EscalationResult[Any]:
        """Run one logical request and report the tier that produced it."""
        ...


class IntentClassifierProtocol(Protocol):
    """Protocol for deciding between "question" and "new tasks"."""

    async def classify(
        self,
        text: str,
        corpus: Sequence[TaskRecord],
        *,
        user_id: str = "anonymous",
        today: date | None = None,
    ) -> EscalationResult[QueryDetectionResult]:
        ...


class TaskExtractorProtocol(Protocol):
    """Protocol for turning free text into task candidates."""

    async def extract_tasks(
        self,
        text: str,
        *,
        user_id: str = "anonymous",
        today: date | None = None,
    ) -> EscalationResult[TaskExtractionResult]:
        ...


class UsageTrackerProtocol(Protocol):
    """Protocol for recording provider usage.

    Implementations must not raise; usage is best-effort bookkeeping.
    """

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
        ...

    def summary(self, user_id: str) -> dict[str, Any]:
        ...


class CorpusProviderProtocol(Protocol):
    """Read access to the current task set."""

    def snapshot(self) -> list[TaskRecord]:
        """Return a point-in-time copy of every task."""
        ...


class PersistenceSinkProtocol(Protocol):
    """Stores extracted task candidates."""

    async def persist(self, candidates: Sequence[TaskCandidate]) -> list[int]:
        """Persist ``candidates`` and return their assigned identifiers."""
        ...
