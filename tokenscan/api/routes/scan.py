"""Scan routes - run a token scan or read the cached snapshot."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tokenscan.api.deps import get_db, get_scan_service
from tokenscan.core.chains import require_chain
from tokenscan.core.errors import STATUS_TIMEOUT, STATUS_VALIDATION, ValidationError
from tokenscan.core.validation import canonicalize_address
from tokenscan.schemas.api import CachedTokenResponse, ScanErrorResponse, ScanRequest, ScanResponse
from tokenscan.schemas.records import TokenIdentity
from tokenscan.services.data_service import DataService
from tokenscan.services.scan_service import ScanService

router = APIRouter(prefix="/scan", tags=["scan"])

STATUS_CODES = {STATUS_VALIDATION: 400, STATUS_TIMEOUT: 504}


@router.post(
    "",
    response_model=ScanResponse,
    responses={400: {"model": ScanErrorResponse}, 500: {"model": ScanErrorResponse}, 504: {"model": ScanErrorResponse}},
)
async def run_scan(
    request: ScanRequest,
    x_request_id: Optional[str] = Header(None),
    service: ScanService = Depends(get_scan_service),
):
    """
    Scan a token and return its category scores.

    Cached results younger than the cache TTL are returned without calling
    providers unless `force_refresh` is set. Failures return a payload with
    a stable `code` and a coarse `status`:
    - validation: 400
    - timeout: 504
    - internal: 500
    """
    outcome = await service.scan(request, request_id=x_request_id)
    if outcome.success:
        return outcome.payload

    status_code = STATUS_CODES.get(outcome.payload.get("status"), 500)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(outcome.payload))


@router.get("/{chain_id}/{token_address}", response_model=CachedTokenResponse)
def get_cached_scan(chain_id: str, token_address: str, db: Session = Depends(get_db)):
    """Latest persisted snapshot of a token, without triggering a scan."""
    try:
        identity = TokenIdentity(canonicalize_address(token_address), require_chain(chain_id).chain_id)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    cached = DataService(db).get_cached_token(identity)
    if cached is None:
        raise HTTPException(status_code=404, detail=f"Token {identity} has not been scanned")
    return cached
