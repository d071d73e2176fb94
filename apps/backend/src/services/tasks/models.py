"""Domain models for the draft queue and the input pipeline.

* Draft             - a pending creation request owned by the DraftQueue.
* DraftOutcome      - result of processing one draft (one per worker step).
* SubmissionOutcome - result of routing one free-text submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum

from schemas.ai import QueryDetectionResult
from schemas.tasks import DraftView, TaskCandidate
from services.ai.models import EscalationResult


class DraftStatus(StrEnum):
    QUEUED = "queued"
    PROCESSING = "processing"
    ERROR = "error"


@dataclass(slots=True)
class Draft:
    id: str
    text: str
    created_at: datetime
    sequence: int
    user_id: str = "anonymous"
    status: DraftStatus = DraftStatus.QUEUED
    error: str | None = None

    def copy(self) -> Draft:
        return replace(self)

    def to_view(self) -> DraftView:
        return DraftView(
            id=self.id,
            text=self.text,
            status=self.status.value,
            error=self.error,
            created_at=self.created_at,
        )


@dataclass(slots=True)
class DraftOutcome:
    """Structured result of one draft extraction attempt."""

    draft: Draft
    success: bool
    task_ids: list[int] = field(default_factory=list)
    candidates: list[TaskCandidate] = field(default_factory=list)
    message: str | None = None
    error_code: str | None = None


@dataclass(slots=True)
class SubmissionOutcome:
    kind: str  # "query" | "draft" | "error"
    query: EscalationResult[QueryDetectionResult] | None = None
    draft: Draft | None = None
    message: str | None = None
