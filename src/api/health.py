"""
Health check endpoint - used by load balancers, Docker healthcheck, and monitoring.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request

from src.schemas.api_responses import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Basic liveness check - returns 200 if the app is running."""
    state = request.app.state
    store = getattr(state, "identity_store", None)
    tasks = getattr(state, "task_runner", None)
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
        identities_tracked=len(store) if store is not None else None,
        tasks_in_flight=tasks.in_flight if tasks is not None else None,
    )
