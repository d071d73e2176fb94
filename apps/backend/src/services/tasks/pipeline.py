"""End-to-end handling of one free-text submission.

validate -> corpus snapshot -> classify -> answer the question, or queue the
text as a draft and kick the worker.
"""

from __future__ import annotations

import logging

from core.exceptions import EmptyInputError
from services.ai.exceptions import PipelineError
from services.ai.interfaces import CorpusProviderProtocol, IntentClassifierProtocol
from services.tasks.draft_queue import DraftQueue
from services.tasks.models import SubmissionOutcome


logger = logging.getLogger(__name__)

COULD_NOT_PROCESS = "Could not process your input. Please try again."


class TaskInputPipeline:
    def __init__(
        self,
        router: IntentClassifierProtocol,
        queue: DraftQueue,
        corpus: CorpusProviderProtocol,
    ) -> None:
        self.router = router
        self.queue = queue
        self.corpus = corpus

    async def submit(self, text: str, *, user_id: str = "anonymous") -> SubmissionOutcome:
        """Route ``text`` and return what happened to it.

        Raises:
            EmptyInputError: ``text`` is blank.
        """
        text = text.strip()
        if not text:
            raise EmptyInputError("Input text must not be empty")

        try:
            result = await self.router.classify(
                text, self.corpus.snapshot(), user_id=user_id
            )
        except PipelineError as e:
            logger.warning("Classification failed (%s); input not processed", e.error_code)
            return SubmissionOutcome(kind="error", message=COULD_NOT_PROCESS)

        if result.response.is_query:
            return SubmissionOutcome(kind="query", query=result)

        draft = self.queue.enqueue(text, user_id=user_id)
        self.queue.drain()
        return SubmissionOutcome(kind="draft", draft=draft)
