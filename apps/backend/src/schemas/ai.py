"""AI-related schemas for intent routing and task extraction.

The two ``*Result`` models are registered as pydantic-ai ``output_type`` so
the provider is forced into a JSON shape we can validate. Field aliases keep
the camelCase keys the prompts ask for (``isQuery``, ``matchingTodoIds``,
``dueDate``) while Python code uses snake_case.
"""

from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .tasks import DraftView, TaskCandidate, TaskRecord


QueryIntent = Literal[
    "filter_by_tag",
    "filter_by_priority",
    "filter_by_date",
    "filter_by_status",
    "summarize",
    "search",
    "todo_creation",
]
TierLiteral = Literal["economy", "advanced"]


class QueryDetectionResult(BaseModel):
    """Agent output: is the input a question about tasks, and what matches."""

    is_query: bool = Field(..., alias="isQuery")
    intent: QueryIntent = Field(default="search")
    keywords: list[str] = Field(default_factory=list)
    response: str = Field(
        default="", description="A natural language answer to the query"
    )
    matching_todo_ids: list[int] = Field(
        default_factory=list,
        alias="matchingTodoIds",
        description="Actual todo IDs from the 'ID X:' lines, never list positions",
    )
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence_reason: str | None = Field(default=None, alias="confidenceReason")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, v: Any) -> str:
        text = str(v or "").strip().lower()
        return text if text in get_args(QueryIntent) else "search"


class TaskExtractionResult(BaseModel):
    """Agent output: the ordered list of tasks found in free text."""

    todos: list[TaskCandidate] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence_reason: str | None = Field(default=None, alias="confidenceReason")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


InferenceResponse = QueryDetectionResult | TaskExtractionResult


# --- API contracts ---------------------------------------------------------
class QueryRequest(BaseModel):
    """Classify input against the current corpus (or an explicit one)."""

    text: str = Field(..., min_length=1, max_length=8000)
    todos: list[TaskRecord] | None = Field(
        default=None,
        description="Optional explicit corpus; defaults to the stored tasks",
    )

    model_config = ConfigDict(extra="forbid")


class ExtractRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)

    model_config = ConfigDict(extra="forbid")


class SubmitRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)

    model_config = ConfigDict(extra="forbid")


class QueryResponse(BaseModel):
    is_query: bool
    intent: str
    keywords: list[str]
    response: str
    matching_todo_ids: list[int]
    confidence: float | None = None
    tier_used: TierLiteral
    provider: str
    model: str
    escalated: bool = False


class ExtractResponse(BaseModel):
    todos: list[TaskCandidate]
    count: int
    tier_used: TierLiteral
    provider: str
    model: str


class SubmissionResponse(BaseModel):
    kind: Literal["query", "draft", "error"]
    query: QueryResponse | None = None
    draft: DraftView | None = None
    message: str | None = None


class DrainResponse(BaseModel):
    started: bool
    queued: int
    processing: str | None = None
