"""Health routes - System health, readiness and provider health."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from tokenscan.api.deps import get_db
from tokenscan.providers.health import provider_health
from tokenscan.schemas.api import HealthResponse, ProviderHealthOut
from tokenscan.services.data_service import DataService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(response: Response, db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancer and Docker health checks.

    Checks database connectivity and reports the last scan time.
    Returns 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        response.status_code = 503
        return HealthResponse(database=f"down: {e}", last_scan_at=None)

    return HealthResponse(database="ok", last_scan_at=DataService(db).get_last_scan_at())


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)):
    """
    Readiness probe - checks if service can serve traffic.

    Returns 200 if ready, 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
    except Exception as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e), "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/providers", response_model=list[ProviderHealthOut])
def providers_health():
    """
    Per-provider call accounting since process start.

    A provider is degraded when a quarter or more of its calls errored;
    NoData answers do not count against it.
    """
    return provider_health.snapshot()
