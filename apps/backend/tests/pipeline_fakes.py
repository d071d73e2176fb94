"""Test doubles and factories for the task pipeline.

Kept in a plain module (not conftest) so test files can import them directly.
"""

from collections.abc import Callable, Sequence
from typing import Any

from schemas.ai import QueryDetectionResult, TaskExtractionResult
from schemas.tasks import TaskCandidate, TaskRecord
from services.ai.models import (
    EscalationResult,
    InvocationKind,
    InvocationPayload,
    ModelTier,
    Provider,
    TierDecision,
)


Handler = Callable[[InvocationKind, InvocationPayload, Provider, str], Any]


class FakeInvoker:
    """Invoker double that records calls and delegates to a handler.

    The handler returns a response, or an exception instance to raise.
    """

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.calls: list[tuple[InvocationKind, Provider, str]] = []

    async def invoke(
        self,
        kind: InvocationKind,
        payload: InvocationPayload,
        provider: Provider,
        model_name: str,
    ) -> Any:
        self.calls.append((kind, provider, model_name))
        outcome = self.handler(kind, payload, provider, model_name)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def models_called(self) -> list[str]:
        return [model for _, _, model in self.calls]


def make_task(task_id: int, text: str | None = None, **kwargs: Any) -> TaskRecord:
    return TaskRecord(id=task_id, text=text or f"Task {task_id}", **kwargs)


def make_corpus(
    size: int,
    *,
    tagged: dict[str, Sequence[int]] | None = None,
    high_priority: Sequence[int] = (),
    start_id: int = 101,
) -> list[TaskRecord]:
    """Build ``size`` short tasks with ids starting at ``start_id``.

    ``tagged`` maps a tag to the ids carrying it; every other task is tagged
    ``home``. Ids listed in ``high_priority`` get priority ``high``.
    """
    tagged = tagged or {}
    corpus = []
    for task_id in range(start_id, start_id + size):
        tags = [tag for tag, ids in tagged.items() if task_id in ids] or ["home"]
        priority = "high" if task_id in high_priority else None
        corpus.append(make_task(task_id, tags=tags, priority=priority))
    return corpus


def query_result(
    ids: Sequence[int] = (),
    *,
    is_query: bool = True,
    confidence: float | None = 0.9,
    intent: str = "search",
    reason: str | None = None,
) -> QueryDetectionResult:
    return QueryDetectionResult(
        is_query=is_query,
        intent=intent,
        matching_todo_ids=list(ids),
        response="ok" if is_query else "",
        confidence=confidence,
        confidence_reason=reason,
    )


def extraction_result(
    *texts: str, confidence: float | None = 0.95
) -> TaskExtractionResult:
    return TaskExtractionResult(
        todos=[TaskCandidate(text=t) for t in texts], confidence=confidence
    )



def escalation_result(
    response: Any,
    *,
    tier: ModelTier = ModelTier.ECONOMY,
    provider: Provider = Provider.ANTHROPIC,
    model_name: str = "claude-haiku-4-5-20251001",
) -> EscalationResult[Any]:
    """Wrap ``response`` as if the controller produced it on the first try."""
    decision = TierDecision(
        tier=tier, reason="test", models={provider: model_name}
    )
    return EscalationResult(
        response=response,
        tier_used=tier,
        provider=provider,
        model_name=model_name,
        initial_decision=decision,
    )


class FakeExtractor:
    """Extractor double keyed by draft text.

    ``outcomes`` maps input text to a TaskExtractionResult or an exception
    instance to raise. Unknown text yields one candidate echoing the input.
    """

    def __init__(self, outcomes: dict[str, Any] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[str] = []
        self.user_ids: list[str] = []
        self.on_call: Callable[[str], Any] | None = None

    async def extract_tasks(
        self, text: str, *, user_id: str = "anonymous", today: Any = None
    ) -> EscalationResult[TaskExtractionResult]:
        self.calls.append(text)
        self.user_ids.append(user_id)
        if self.on_call is not None:
            await self.on_call(text)
        outcome = self.outcomes.get(text, extraction_result(text))
        if isinstance(outcome, BaseException):
            raise outcome
        return escalation_result(outcome)


class FakeSink:
    """Persistence sink double that hands out increasing ids."""

    def __init__(self, error: Exception | None = None, start: int = 1) -> None:
        self.error = error
        self.persisted: list[list[TaskCandidate]] = []
        self._next = start

    async def persist(self, candidates: Sequence[TaskCandidate]) -> list[int]:
        if self.error is not None:
            raise self.error
        self.persisted.append(list(candidates))
        ids = list(range(self._next, self._next + len(candidates)))
        self._next += len(candidates)
        return ids
