from fastapi import APIRouter

from .ai import router as ai_router
from .health import router as health_router
from .tasks import router as tasks_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(ai_router)
api_router.include_router(tasks_router)
