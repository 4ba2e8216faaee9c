"""
Health Check
============
Liveness endpoint. Public: never passes through authentication gates.
"""

from fastapi import APIRouter

from ..schemas import HealthResponse

DEFAULT_HEALTH_MESSAGE = "Image Upload Gateway is running"


def create_health_router(message: str = DEFAULT_HEALTH_MESSAGE) -> APIRouter:
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", message=message)

    return router
