"""Plain task listing and manual creation (no inference)."""

from fastapi import APIRouter, status

from dependencies.pipeline import TaskStoreDep
from schemas.api import ApiResponse
from schemas.tasks import TaskCreateRequest, TaskRecord


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=ApiResponse[list[TaskRecord]])
def list_tasks(store: TaskStoreDep) -> ApiResponse[list[TaskRecord]]:
    return ApiResponse(success=True, data=store.snapshot(), message="Tasks retrieved")


@router.post(
    "",
    response_model=ApiResponse[TaskRecord],
    status_code=status.HTTP_201_CREATED,
)
def create_task(
    request: TaskCreateRequest, store: TaskStoreDep
) -> ApiResponse[TaskRecord]:
    task = store.add(request)
    return ApiResponse(success=True, data=task, message="Task created")
