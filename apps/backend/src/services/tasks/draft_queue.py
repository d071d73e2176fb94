"""Single-flight FIFO queue of pending task-creation drafts.

``enqueue`` never touches inference. ``drain`` starts one background worker
that processes queued drafts oldest-first, one at a time, until none are
left. At most one draft is ``processing`` at any moment: the check-and-set in
``_claim_next`` runs without an ``await`` in between, so concurrent callers on
the event loop cannot both claim work.

A draft whose extraction fails keeps its place in the queue with status
``error`` until a caller resets or discards it. It is never retried
automatically. A draft whose tasks were extracted but could not be persisted
leaves the queue; its outcome is kept in ``recent_failures`` (bounded) and
passed to ``on_persistence_failed``.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from core.error_handler import StructuredLogger
from core.exceptions import DraftNotFoundError, InvalidDraftStateError
from services.ai.exceptions import PersistenceFailed, PipelineError
from services.ai.interfaces import PersistenceSinkProtocol, TaskExtractorProtocol
from services.tasks.models import Draft, DraftOutcome, DraftStatus


logger = StructuredLogger(__name__)

PersistenceFailedCallback = Callable[[DraftOutcome], Any]

MAX_RECENT_FAILURES = 50


async def _maybe_call(fn: Callable[..., Any] | None, *args: Any) -> Any:
    """Call fn which may be sync or async; await if necessary."""
    if fn is None:
        return None
    result = fn(*args)
    if asyncio.iscoroutine(result):
        return await result
    return result


class DraftQueue:
    def __init__(
        self,
        extractor: TaskExtractorProtocol,
        sink: PersistenceSinkProtocol,
        on_persistence_failed: PersistenceFailedCallback | None = None,
    ) -> None:
        self.extractor = extractor
        self.sink = sink
        self.on_persistence_failed = on_persistence_failed
        self._drafts: dict[str, Draft] = {}
        self._sequence = itertools.count()
        self._processing_id: str | None = None
        self._worker: asyncio.Task[list[DraftOutcome]] | None = None
        self._recent_failures: deque[DraftOutcome] = deque(maxlen=MAX_RECENT_FAILURES)

    # -- read side ---------------------------------------------------------
    def snapshot(self) -> list[Draft]:
        """Copies of every draft in submission order."""
        return [d.copy() for d in sorted(self._drafts.values(), key=lambda d: d.sequence)]

    def get(self, draft_id: str) -> Draft:
        return self._require(draft_id).copy()

    def recent_failures(self) -> list[DraftOutcome]:
        """Drafts whose tasks were extracted but not persisted, oldest first.

        Only the last ``MAX_RECENT_FAILURES`` are kept.
        """
        return list(self._recent_failures)

    @property
    def processing(self) -> Draft | None:
        if self._processing_id is None:
            return None
        draft = self._drafts.get(self._processing_id)
        return draft.copy() if draft else None

    @property
    def queued_count(self) -> int:
        return sum(1 for d in self._drafts.values() if d.status is DraftStatus.QUEUED)

    @property
    def worker(self) -> asyncio.Task[list[DraftOutcome]] | None:
        return self._worker

    def _require(self, draft_id: str) -> Draft:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise DraftNotFoundError(f"Draft {draft_id} not found")
        return draft

    def _oldest_queued(self) -> Draft | None:
        queued = [d for d in self._drafts.values() if d.status is DraftStatus.QUEUED]
        return min(queued, key=lambda d: d.sequence) if queued else None

    # -- write side --------------------------------------------------------
    def enqueue(self, text: str, *, user_id: str = "anonymous") -> Draft:
        draft = Draft(
            id=str(uuid4()),
            text=text,
            created_at=datetime.now(UTC),
            sequence=next(self._sequence),
            user_id=user_id,
        )
        self._drafts[draft.id] = draft
        logger.info("Draft queued", draft_id=draft.id, length=len(text))
        return draft.copy()

    def reset(self, draft_id: str) -> Draft:
        """Move an ``error`` draft back to ``queued``.

        It keeps its original submission position.
        """
        draft = self._require(draft_id)
        if draft.status is not DraftStatus.ERROR:
            raise InvalidDraftStateError(
                f"Only drafts in error can be reset (draft is {draft.status.value})"
            )
        draft.status = DraftStatus.QUEUED
        draft.error = None
        logger.info("Draft reset", draft_id=draft_id)
        return draft.copy()

    def discard(self, draft_id: str) -> Draft:
        draft = self._require(draft_id)
        if draft.status is DraftStatus.PROCESSING:
            raise InvalidDraftStateError("A draft that is processing cannot be discarded")
        del self._drafts[draft_id]
        logger.info("Draft discarded", draft_id=draft_id, status=draft.status.value)
        return draft.copy()

    # -- worker ------------------------------------------------------------
    def _claim_next(self) -> Draft | None:
        if self._processing_id is not None:
            return None
        draft = self._oldest_queued()
        if draft is None:
            return None
        draft.status = DraftStatus.PROCESSING
        self._processing_id = draft.id
        return draft

    async def process_next(self) -> DraftOutcome | None:
        """Process the oldest queued draft.

        Returns None when a draft is already processing or nothing is queued.
        """
        draft = self._claim_next()
        if draft is None:
            return None
        logger.info("Draft processing", draft_id=draft.id)
        try:
            return await self._process(draft)
        finally:
            if draft.status is DraftStatus.PROCESSING and draft.id in self._drafts:
                # Left mid-flight (cancelled); surface it instead of wedging
                draft.status = DraftStatus.ERROR
                draft.error = "Processing was interrupted"
            self._processing_id = None

    async def _process(self, draft: Draft) -> DraftOutcome:
        try:
            result = await self.extractor.extract_tasks(
                draft.text, user_id=draft.user_id
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            error_code = e.error_code if isinstance(e, PipelineError) else "extraction_failed"
            draft.status = DraftStatus.ERROR
            draft.error = message
            if isinstance(e, PipelineError):
                logger.warning(
                    "Draft extraction failed", draft_id=draft.id, error_code=error_code
                )
            else:
                logger.exception(
                    "Unexpected error during draft extraction",
                    draft_id=draft.id,
                    exception_type=type(e).__name__,
                )
            return DraftOutcome(
                draft=draft.copy(),
                success=False,
                message=message,
                error_code=error_code,
            )

        candidates = list(result.response.todos)
        try:
            task_ids = await self.sink.persist(candidates)
        except Exception as e:
            # Extraction succeeded, so the draft is done either way
            self._drafts.pop(draft.id, None)
            failure = PersistenceFailed(f"Failed to persist extracted tasks: {e}")
            logger.error(
                "Persisting extracted tasks failed",
                draft_id=draft.id,
                error_code=failure.error_code,
                candidates=len(candidates),
            )
            outcome = DraftOutcome(
                draft=draft.copy(),
                success=False,
                candidates=candidates,
                message=failure.message,
                error_code=failure.error_code,
            )
            self._recent_failures.append(outcome)
            await self._notify_persistence_failed(outcome)
            return outcome

        self._drafts.pop(draft.id, None)
        logger.info(
            "Draft completed",
            draft_id=draft.id,
            created=len(task_ids),
            tier=result.tier_used.value,
            provider=result.provider.value,
            model=result.model_name,
        )
        return DraftOutcome(
            draft=draft.copy(),
            success=True,
            task_ids=task_ids,
            candidates=candidates,
            message=f"Created {len(task_ids)} task(s)",
        )

    async def _notify_persistence_failed(self, outcome: DraftOutcome) -> None:
        try:
            await _maybe_call(self.on_persistence_failed, outcome)
        except Exception:
            logger.exception("on_persistence_failed callback raised", draft_id=outcome.draft.id)

    async def _run_worker(self) -> list[DraftOutcome]:
        outcomes: list[DraftOutcome] = []
        while True:
            outcome = await self.process_next()
            if outcome is None:
                break
            outcomes.append(outcome)
        return outcomes

    def drain(self) -> asyncio.Task[list[DraftOutcome]] | None:
        """Start the worker if it is idle and work is queued.

        Must be called from a running event loop. Returns the worker task, or
        None when the call is a no-op.
        """
        if self._worker is not None and not self._worker.done():
            return None
        if self._processing_id is not None or self._oldest_queued() is None:
            return None
        self._worker = asyncio.get_running_loop().create_task(self._run_worker())
        return self._worker

    async def wait_idle(self) -> None:
        if self._worker is not None and not self._worker.done():
            await asyncio.wait({self._worker})
