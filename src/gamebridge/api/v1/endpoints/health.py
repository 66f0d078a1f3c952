"""Health API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from gamebridge.services.dependencies import get_health_checker
from gamebridge.services.health import HealthChecker, HealthStatus, SystemHealth

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=SystemHealth)
async def get_system_health(
    checker: Annotated[HealthChecker, Depends(get_health_checker)],
) -> SystemHealth:
    """Get node, signer and event listener health."""
    return await checker.check_all()


@router.get("/live")
async def liveness_check() -> dict[str, Any]:
    """Liveness probe endpoint."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check(
    checker: Annotated[HealthChecker, Depends(get_health_checker)],
) -> dict[str, Any]:
    """Readiness probe endpoint; fails when the node is unreachable."""
    health = await checker.check_all()

    if health.status == HealthStatus.UNHEALTHY:
        raise HTTPException(503, "Service not ready")

    return {
        "status": "ready",
        "overall_health": health.status.value,
    }
