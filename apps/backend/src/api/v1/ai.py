"""Natural-language task endpoints: query, extraction, submission and drafts."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Header

from dependencies.pipeline import (
    DraftQueueDep,
    ExtractionServiceDep,
    InputPipelineDep,
    IntentRouterDep,
    TaskStoreDep,
    UsageTrackerDep,
)
from schemas.ai import (
    DrainResponse,
    ExtractRequest,
    ExtractResponse,
    QueryDetectionResult,
    QueryRequest,
    QueryResponse,
    SubmissionResponse,
    SubmitRequest,
)
from schemas.api import ApiResponse
from schemas.tasks import DraftView, PersistenceFailureView
from services.ai.models import EscalationResult
from services.tasks.models import DraftOutcome, SubmissionOutcome

router = APIRouter(prefix="/ai", tags=["ai"])

UserIdHeader = Annotated[str, Header(alias="X-User-ID")]


def _to_query_response(result: EscalationResult[QueryDetectionResult]) -> QueryResponse:
    response = result.response
    return QueryResponse(
        is_query=response.is_query,
        intent=response.intent,
        keywords=response.keywords,
        response=response.response,
        matching_todo_ids=response.matching_todo_ids,
        confidence=response.confidence,
        tier_used=result.tier_used.value,
        provider=result.provider.value,
        model=result.model_name,
        escalated=result.escalated,
    )


def _to_submission_response(outcome: SubmissionOutcome) -> SubmissionResponse:
    return SubmissionResponse(
        kind=outcome.kind,
        query=_to_query_response(outcome.query) if outcome.query else None,
        draft=outcome.draft.to_view() if outcome.draft else None,
        message=outcome.message,
    )


def _to_failure_view(outcome: DraftOutcome) -> PersistenceFailureView:
    draft = outcome.draft
    return PersistenceFailureView(
        draft_id=draft.id,
        user_id=draft.user_id,
        text=draft.text,
        message=outcome.message,
        error_code=outcome.error_code,
        candidates=outcome.candidates,
        created_at=draft.created_at,
    )


@router.post("/query", response_model=ApiResponse[QueryResponse])
async def query_tasks(
    request: QueryRequest,
    router_: IntentRouterDep,
    store: TaskStoreDep,
    user_id: UserIdHeader = "anonymous",
) -> ApiResponse[QueryResponse]:
    """Classify input and, for questions, answer it against the task corpus."""
    corpus = request.todos if request.todos is not None else store.snapshot()
    result = await router_.classify(request.text, corpus, user_id=user_id)
    return ApiResponse(
        success=True,
        data=_to_query_response(result),
        message="Query processed",
    )


@router.post("/extract", response_model=ApiResponse[ExtractResponse])
async def extract_tasks(
    request: ExtractRequest,
    extractor: ExtractionServiceDep,
    user_id: UserIdHeader = "anonymous",
) -> ApiResponse[ExtractResponse]:
    """Extract task candidates without persisting them."""
    result = await extractor.extract_tasks(request.text, user_id=user_id)
    todos = result.response.todos
    return ApiResponse(
        success=True,
        data=ExtractResponse(
            todos=todos,
            count=len(todos),
            tier_used=result.tier_used.value,
            provider=result.provider.value,
            model=result.model_name,
        ),
        message=f"Extracted {len(todos)} task(s)",
    )


@router.post("/submit", response_model=ApiResponse[SubmissionResponse])
async def submit_input(
    request: SubmitRequest,
    pipeline: InputPipelineDep,
    user_id: UserIdHeader = "anonymous",
) -> ApiResponse[SubmissionResponse]:
    """Answer a question, or queue the text for task extraction."""
    outcome = await pipeline.submit(request.text, user_id=user_id)
    return ApiResponse(
        success=outcome.kind != "error",
        data=_to_submission_response(outcome),
        message=outcome.message or f"Input handled as {outcome.kind}",
    )


@router.get("/drafts", response_model=ApiResponse[list[DraftView]])
async def list_drafts(queue: DraftQueueDep) -> ApiResponse[list[DraftView]]:
    return ApiResponse(
        success=True,
        data=[d.to_view() for d in queue.snapshot()],
        message="Drafts retrieved",
    )


@router.get(
    "/drafts/failures", response_model=ApiResponse[list[PersistenceFailureView]]
)
async def list_persistence_failures(
    queue: DraftQueueDep,
) -> ApiResponse[list[PersistenceFailureView]]:
    failures = queue.recent_failures()
    return ApiResponse(
        success=True,
        data=[_to_failure_view(o) for o in failures],
        message=f"{len(failures)} unsaved draft(s)",
    )


@router.post("/drafts/drain", response_model=ApiResponse[DrainResponse])
async def drain_drafts(queue: DraftQueueDep) -> ApiResponse[DrainResponse]:
    task = queue.drain()
    processing = queue.processing
    return ApiResponse(
        success=True,
        data=DrainResponse(
            started=task is not None,
            queued=queue.queued_count,
            processing=processing.id if processing else None,
        ),
        message="Worker started" if task is not None else "Nothing to drain",
    )


@router.post("/drafts/{draft_id}/reset", response_model=ApiResponse[DraftView])
async def reset_draft(draft_id: str, queue: DraftQueueDep) -> ApiResponse[DraftView]:
    draft = queue.reset(draft_id)
    return ApiResponse(success=True, data=draft.to_view(), message="Draft requeued")


@router.delete("/drafts/{draft_id}", response_model=ApiResponse[DraftView])
async def discard_draft(draft_id: str, queue: DraftQueueDep) -> ApiResponse[DraftView]:
    draft = queue.discard(draft_id)
    return ApiResponse(success=True, data=draft.to_view(), message="Draft discarded")


@router.get("/usage", response_model=ApiResponse[dict[str, Any]])
async def get_usage(
    tracker: UsageTrackerDep, user_id: UserIdHeader = "anonymous"
) -> ApiResponse[dict[str, Any]]:
    return ApiResponse(
        success=True, data=tracker.summary(user_id), message="Usage retrieved"
    )
