"""Capability invoker: one structured call to one provider at one model.

The invoker owns the prompt contract, the pydantic-ai agent construction and
the translation of provider errors into the pipeline taxonomy:

* schema violations -> ``MalformedResponse`` (no in-agent output retries)
* timeouts, auth, rate limits, 5xx -> ``ProviderUnavailable``

It also enforces identifier hygiene on the query path: only ids present in
the corpus snapshot handed to the call survive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from pydantic_ai import Agent
from pydantic_ai.exceptions import UnexpectedModelBehavior
from pydantic_ai.models import Model

from schemas.ai import InferenceResponse, QueryDetectionResult, TaskExtractionResult
from schemas.tasks import TaskRecord
from services.ai.exceptions import MalformedResponse, ProviderUnavailable
from services.ai.failures import classify_provider_failure
from services.ai.model_factory import create_model
from services.ai.models import InvocationKind, InvocationPayload, Provider
from services.ai.prompts import (
    QUERY_DETECTION_PROMPT,
    TASK_EXTRACTION_PROMPT,
    build_extraction_prompt,
    build_query_prompt,
)


logger = logging.getLogger(__name__)

ModelResolver = Callable[[Provider, str], Model]

_OUTPUT_TYPES: dict[InvocationKind, type[QueryDetectionResult | TaskExtractionResult]] = {
    InvocationKind.QUERY: QueryDetectionResult,
    InvocationKind.EXTRACTION: TaskExtractionResult,
}
_SYSTEM_PROMPTS: dict[InvocationKind, str] = {
    InvocationKind.QUERY: QUERY_DETECTION_PROMPT,
    InvocationKind.EXTRACTION: TASK_EXTRACTION_PROMPT,
}


def restrict_to_corpus(
    result: QueryDetectionResult, corpus: Sequence[TaskRecord]
) -> QueryDetectionResult:
    """Drop ids the corpus snapshot does not contain and collapse duplicates."""
    known = {task.id for task in corpus}
    kept: list[int] = []
    dropped: list[int] = []
    for todo_id in result.matching_todo_ids:
        if todo_id not in known:
            dropped.append(todo_id)
        elif todo_id not in kept:
            kept.append(todo_id)
    if dropped:
        logger.warning(
            "Dropping %d matching id(s) not present in the corpus snapshot: %s",
            len(dropped),
            dropped,
        )
    if kept == result.matching_todo_ids:
        return result
    return result.model_copy(update={"matching_todo_ids": kept})


class CapabilityInvoker:
    """Runs a single structured inference call.

    Accepts an optional ``model_resolver`` so tests (and alternative hosting
    setups) can supply their own pydantic-ai models.
    """

    def __init__(self, model_resolver: ModelResolver | None = None) -> None:
        self._resolve_model: ModelResolver = model_resolver or create_model

    def _build_agent(self, kind: InvocationKind, model: Model) -> Agent[None, Any]:
        return Agent(
            model,
            output_type=_OUTPUT_TYPES[kind],
            system_prompt=_SYSTEM_PROMPTS[kind],
            output_retries=0,
        )

    @staticmethod
    def _build_prompt(kind: InvocationKind, payload: InvocationPayload) -> str:
        if kind is InvocationKind.QUERY:
            return build_query_prompt(payload.text, payload.corpus, payload.today)
        return build_extraction_prompt(payload.text, payload.today)

    async def invoke(
        self,
        kind: InvocationKind,
        payload: InvocationPayload,
        provider: Provider,
        model_name: str,
    ) -> InferenceResponse:
        """Call ``provider`` with ``model_name`` and return the parsed response.

        Raises:
            MalformedResponse: the provider answered with an unusable payload.
            ProviderUnavailable: the provider could not answer.
        """
        try:
            model = self._resolve_model(provider, model_name)
        except ValueError as exc:
            raise ProviderUnavailable(
                str(exc),
                provider=provider.value,
                model_name=model_name,
                reason_code="not_configured",
            ) from exc

        agent = self._build_agent(kind, model)
        prompt = self._build_prompt(kind, payload)
        logger.debug("Invoking %s/%s for %s", provider.value, model_name, kind.value)

        try:
            result = await agent.run(prompt)
        except UnexpectedModelBehavior as exc:
            raise MalformedResponse(
                f"{provider.value}/{model_name} returned an invalid payload: {exc}",
                provider=provider.value,
                model_name=model_name,
            ) from exc
        except Exception as exc:
            failure = classify_provider_failure(exc)
            if failure is None:
                raise
            logger.warning(
                "Provider %s/%s unavailable (%s): %s",
                provider.value,
                model_name,
                failure.reason_code,
                exc,
            )
            raise ProviderUnavailable(
                f"{provider.value}/{model_name} unavailable: {failure.reason_code}",
                provider=provider.value,
                model_name=model_name,
                reason_code=failure.reason_code,
            ) from exc

        output = result.output
        expected = _OUTPUT_TYPES[kind]
        if not isinstance(output, expected):
            raise MalformedResponse(
                f"Expected {expected.__name__}, got {type(output).__name__}",
                provider=provider.value,
                model_name=model_name,
            )
        if isinstance(output, QueryDetectionResult):
            return restrict_to_corpus(output, payload.corpus)
        return output
