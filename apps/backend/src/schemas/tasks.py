"""Task schemas shared by the corpus snapshot, extraction output and API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


Priority = Literal["high", "medium", "low"]
DraftStatusLiteral = Literal["queued", "processing", "error"]

_PRIORITY_ALIASES: dict[str, str] = {
    "urgent": "high",
    "important": "high",
    "normal": "medium",
    "someday": "low",
    "maybe": "low",
}


def _normalize_priority(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text or text == "none":
        return None
    text = _PRIORITY_ALIASES.get(text, text)
    if text not in {"high", "medium", "low"}:
        return "medium"
    return text


def _lenient_date(value: Any) -> Any:
    """Accept ISO dates and datetimes; map blanks and garbage to None."""
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text or text.lower() in {"null", "none"}:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


class TaskRecord(BaseModel):
    """An existing task as seen by the pipeline (a corpus entry)."""

    id: int = Field(..., description="Stable task identifier")
    text: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    priority: Priority | None = None
    due_date: date | None = Field(default=None, alias="dueDate")
    completed: bool = False

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> str | None:
        return _normalize_priority(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v: Any) -> Any:
        return _lenient_date(v)


class TaskCandidate(BaseModel):
    """A task extracted from free text, not yet persisted."""

    text: str = Field(default="", description="Clear, actionable todo item")
    tags: list[str] = Field(default_factory=list, description="Lowercase tags")
    priority: Priority = Field(default="medium")
    due_date: date | None = Field(
        default=None, alias="dueDate", description="YYYY-MM-DD or null"
    )
    context: str | None = Field(
        default=None, description="Original snippet from the input"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> str:
        return _normalize_priority(v) or "medium"

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v: Any) -> Any:
        return _lenient_date(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [str(t).strip().lower() for t in v if str(t).strip()]


class TaskCreateRequest(BaseModel):
    """Manual task creation (plain CRUD path, no inference)."""

    text: str = Field(..., min_length=1, max_length=1000)
    tags: list[str] = Field(default_factory=list)
    priority: Priority | None = None
    due_date: date | None = Field(default=None, alias="dueDate")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class DraftView(BaseModel):
    """Read-only view of a draft for display and observability."""

    id: str
    text: str
    status: DraftStatusLiteral
    error: str | None = None
    created_at: datetime

    model_config = ConfigDict(extra="forbid")


class PersistenceFailureView(BaseModel):
    """A draft whose tasks were extracted but could not be saved."""

    draft_id: str
    user_id: str
    text: str
    message: str | None = None
    error_code: str | None = None
    candidates: list[TaskCandidate] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(extra="forbid")
