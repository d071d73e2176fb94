"""Intent router: is this input a question about tasks, or new tasks?"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from schemas.ai import QueryDetectionResult
from schemas.tasks import TaskRecord
from services.ai.exceptions import MalformedResponse
from services.ai.interfaces import EscalatingRunnerProtocol
from services.ai.models import EscalationResult, InvocationKind, InvocationPayload


logger = logging.getLogger(__name__)


class IntentRouter:
    def __init__(self, controller: EscalatingRunnerProtocol) -> None:
        self.controller = controller

    async def classify(
        self,
        text: str,
        corpus: Sequence[TaskRecord],
        *,
        user_id: str = "anonymous",
        today: date | None = None,
    ) -> EscalationResult[QueryDetectionResult]:
        """Classify ``text`` against a snapshot of ``corpus``.

        The corpus is copied so later mutations by the caller cannot change
        which ids the invocation is allowed to return.
        """
        payload = InvocationPayload(
            text=text, corpus=tuple(corpus), today=today, user_id=user_id
        )
        result = await self.controller.run_with_escalation(InvocationKind.QUERY, payload)
        if not isinstance(result.response, QueryDetectionResult):
            raise MalformedResponse(
                "Query classification returned an extraction payload",
                provider=result.provider.value,
                model_name=result.model_name,
            )
        logger.info(
            "Classified input as %s (intent=%s, matches=%d, tier=%s)",
            "query" if result.response.is_query else "creation",
            result.response.intent,
            len(result.response.matching_todo_ids),
            result.tier_used.value,
        )
        return result
