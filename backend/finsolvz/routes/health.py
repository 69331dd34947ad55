"""
Finsolvz Backend — Health Check Route
======================================

What:  GET / liveness probe returning the configured greeting.
Why:   Load balancers and uptime monitors need an unauthenticated,
       dependency-free endpoint.
"""

from fastapi import APIRouter

from finsolvz.config import settings
from finsolvz.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(message=settings.greeting, status="healthy")
