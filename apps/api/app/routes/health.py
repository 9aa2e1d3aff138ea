from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health Check",
    description="Liveness probe. Fails only if the process itself is unhealthy.",
)
def health_check():
    return {"status": "ok"}


@router.get(
    "/ready",
    summary="Readiness Check",
    description=(
        "Readiness probe.\n\n"
        "Returns 503 until the rating store has been loaded, then reports how "
        "many users it holds."
    ),
    responses={
        200: {"description": "Service is ready", "content": {"application/json": {"example": {"status": "ready", "users": 943}}}},
        503: {"description": "Service is warming up", "content": {"application/json": {"example": {"status": "not_ready"}}}},
    },
)
def readiness_check(request: Request):
    service = getattr(request.app.state, "recommender_service", None)
    if not getattr(request.app.state, "is_ready", False) or service is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready"},
        )
    return {"status": "ready", "users": len(service.store)}
