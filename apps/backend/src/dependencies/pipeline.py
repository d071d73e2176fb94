"""Process-wide pipeline singletons for FastAPI dependency injection.

The draft queue must be shared by every request (its single-flight invariant
is process-wide), so all collaborators are built once and cached. Tests
replace them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from services.ai.escalation import EscalationController
from services.ai.extraction import TaskExtractionService
from services.ai.invoker import CapabilityInvoker
from services.ai.router import IntentRouter
from services.ai.usage import InMemoryUsageTracker
from services.tasks.draft_queue import DraftQueue
from services.tasks.pipeline import TaskInputPipeline
from services.tasks.store import InMemoryTaskStore


@lru_cache
def get_task_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@lru_cache
def get_usage_tracker() -> InMemoryUsageTracker:
    return InMemoryUsageTracker()


@lru_cache
def get_escalation_controller() -> EscalationController:
    return EscalationController(CapabilityInvoker(), usage_tracker=get_usage_tracker())


@lru_cache
def get_intent_router() -> IntentRouter:
    return IntentRouter(get_escalation_controller())


@lru_cache
def get_extraction_service() -> TaskExtractionService:
    return TaskExtractionService(get_escalation_controller())


@lru_cache
def get_draft_queue() -> DraftQueue:
    return DraftQueue(get_extraction_service(), get_task_store())


def get_input_pipeline(
    router: Annotated[IntentRouter, Depends(get_intent_router)],
    queue: Annotated[DraftQueue, Depends(get_draft_queue)],
    store: Annotated[InMemoryTaskStore, Depends(get_task_store)],
) -> TaskInputPipeline:
    return TaskInputPipeline(router, queue, store)


def reset_pipeline_singletons() -> None:
    """Drop cached singletons (used by tests and on settings reload)."""
    for factory in (
        get_task_store,
        get_usage_tracker,
        get_escalation_controller,
        get_intent_router,
        get_extraction_service,
        get_draft_queue,
    ):
        factory.cache_clear()


TaskStoreDep = Annotated[InMemoryTaskStore, Depends(get_task_store)]
UsageTrackerDep = Annotated[InMemoryUsageTracker, Depends(get_usage_tracker)]
IntentRouterDep = Annotated[IntentRouter, Depends(get_intent_router)]
ExtractionServiceDep = Annotated[TaskExtractionService, Depends(get_extraction_service)]
DraftQueueDep = Annotated[DraftQueue, Depends(get_draft_queue)]
InputPipelineDep = Annotated[TaskInputPipeline, Depends(get_input_pipeline)]
