"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel

from sales_engine.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Reports the row count of every loaded collection. The service is
    "degraded" when no sales data was loaded.
    """
    settings = get_settings()
    engine = getattr(request.app.state, "engine", None)

    if engine is None:
        checks: Dict[str, Any] = {"data": {"status": "unhealthy", "error": "not loaded"}}
        overall_status = "unhealthy"
    else:
        rows = engine.row_counts()
        checks = {"data": {"status": "healthy", "rows": rows}}
        overall_status = "healthy" if any(rows.values()) else "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}
