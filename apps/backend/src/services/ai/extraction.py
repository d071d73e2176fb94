"""Turn free text into task candidates via the escalation controller."""

from __future__ import annotations

import logging
from datetime import date

from schemas.ai import TaskExtractionResult
from services.ai.exceptions import MalformedResponse
from services.ai.interfaces import EscalatingRunnerProtocol
from services.ai.models import EscalationResult, InvocationKind, InvocationPayload


logger = logging.getLogger(__name__)


def clean_candidates(result: TaskExtractionResult, source_text: str) -> TaskExtractionResult:
    """Drop candidates without text and default missing context to the source."""
    todos = []
    for candidate in result.todos:
        text = candidate.text.strip()
        if not text:
            continue
        todos.append(
            candidate.model_copy(
                update={"text": text, "context": candidate.context or source_text}
            )
        )
    dropped = len(result.todos) - len(todos)
    if dropped:
        logger.debug("Dropped %d empty task candidate(s)", dropped)
    return result.model_copy(update={"todos": todos})


class TaskExtractionService:
    def __init__(self, controller: EscalatingRunnerProtocol) -> None:
        self.controller = controller

    async def extract_tasks(
        self,
        text: str,
        *,
        user_id: str = "anonymous",
        today: date | None = None,
    ) -> EscalationResult[TaskExtractionResult]:
        payload = InvocationPayload(text=text, today=today, user_id=user_id)
        result = await self.controller.run_with_escalation(
            InvocationKind.EXTRACTION, payload
        )
        if not isinstance(result.response, TaskExtractionResult):
            raise MalformedResponse(
                "Task extraction returned a query payload",
                provider=result.provider.value,
                model_name=result.model_name,
            )
        result.response = clean_candidates(result.response, text)
        logger.info(
            "Extracted %d task(s) at %s tier",
            len(result.response.todos),
            result.tier_used.value,
        )
        return result
