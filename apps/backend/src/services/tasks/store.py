"""Process-local task storage.

Serves as both the corpus provider (``snapshot``) and the persistence sink
(``persist``) for the pipeline. Durable storage lives outside this service.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence

from schemas.tasks import TaskCandidate, TaskCreateRequest, TaskRecord


logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    def __init__(self, tasks: Sequence[TaskRecord] = ()) -> None:
        self._tasks: dict[int, TaskRecord] = {}
        start = max((t.id for t in tasks), default=0) + 1
        self._ids = itertools.count(start)
        for task in tasks:
            self._tasks[task.id] = task

    def snapshot(self) -> list[TaskRecord]:
        return [t.model_copy(deep=True) for t in sorted(self._tasks.values(), key=lambda t: t.id)]

    def get(self, task_id: int) -> TaskRecord | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def add(self, request: TaskCreateRequest) -> TaskRecord:
        task = TaskRecord(
            id=next(self._ids),
            text=request.text,
            tags=[t.strip().lower() for t in request.tags if t.strip()],
            priority=request.priority,
            due_date=request.due_date,
        )
        self._tasks[task.id] = task
        return task

    async def persist(self, candidates: Sequence[TaskCandidate]) -> list[int]:
        created: list[int] = []
        for candidate in candidates:
            task = TaskRecord(
                id=next(self._ids),
                text=candidate.text,
                tags=list(candidate.tags),
                priority=candidate.priority,
                due_date=candidate.due_date,
            )
            self._tasks[task.id] = task
            created.append(task.id)
        logger.info("Persisted %d extracted task(s)", len(created))
        return created

    def clear(self) -> None:
        self._tasks.clear()
