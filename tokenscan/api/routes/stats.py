"""Stats routes - scan activity and cache size."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tokenscan.api.deps import get_db
from tokenscan.core.chains import normalize_chain_id
from tokenscan.schemas.api import ScanEventOut, StatsResponse
from tokenscan.services.data_service import DataService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
def get_scan_stats(
    token_address: Optional[str] = Query(None, description="Filter recent scans by token address"),
    chain_id: Optional[str] = Query(None, description="Filter recent scans by chain"),
    limit: int = Query(20, ge=1, le=100, description="Number of recent scans to return"),
    db: Session = Depends(get_db),
):
    """
    Scan counters and the most recent scan events.

    Anonymous scans are those recorded without a user id, including
    scheduled refreshes.
    """
    service = DataService(db)
    scans = service.get_recent_scans(
        token_address=token_address.strip().lower() if token_address else None,
        chain_id=normalize_chain_id(chain_id) if chain_id else None,
        limit=limit,
    )

    return StatsResponse(
        **service.get_scan_counts(),
        recent_scans=[
            ScanEventOut(
                id=str(scan.id),
                user_id=scan.user_id,
                token_address=scan.token_address,
                chain_id=scan.chain_id,
                score_total=scan.score_total,
                privileged=scan.privileged,
                is_anonymous=scan.is_anonymous,
                from_cache=scan.from_cache,
                scanned_at=scan.scanned_at,
            )
            for scan in scans
        ],
    )
