"""Refresh routes - re-scan every cached token."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from tokenscan.api.deps import get_refresh_service
from tokenscan.core.logging import get_logger
from tokenscan.schemas.api import RefreshResponse
from tokenscan.services.refresh_service import RefreshService

router = APIRouter(prefix="/refresh", tags=["refresh"])
log = get_logger("refresh_routes")


@router.post("/run-all", response_model=RefreshResponse)
async def refresh_all(
    limit: Optional[int] = Query(None, ge=1, description="Refresh only the N stalest tokens"),
    service: RefreshService = Depends(get_refresh_service),
):
    """
    Force-refresh cached tokens, stalest first.

    Runs sequentially with a pause between tokens; intended for the
    scheduled trigger rather than interactive use.
    """
    log.info(f"Refresh triggered (limit={limit})")
    summary = await service.run_all(limit=limit)
    return RefreshResponse(**{key: summary[key] for key in RefreshResponse.model_fields})
