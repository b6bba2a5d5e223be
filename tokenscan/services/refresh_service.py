"""Scheduled re-scan of every cached token."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tokenscan.core.config import settings
from tokenscan.core.logging import get_logger
from tokenscan.schemas.api import ScanRequest
from tokenscan.services.persistence import ScanRepository
from tokenscan.services.scan_service import ScanService

log = get_logger("refresh")


class RefreshService:
    """Force-refreshes cached tokens one at a time, stalest first.

    Scans run sequentially with a pause between them so a full refresh
    stays under provider rate limits. A failing token is counted and the
    run moves on.
    """

    def __init__(
        self,
        scan_service: Optional[ScanService] = None,
        repository: Optional[ScanRepository] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.repository = repository or ScanRepository()
        self.scan_service = scan_service or ScanService(repository=self.repository)
        self.delay_seconds = settings.REFRESH_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def run_all(self, limit: Optional[int] = None) -> Dict[str, Any]:
        started = datetime.now(timezone.utc)
        tokens = await self.repository.list_cached_tokens(limit)
        log.info(f"Refresh started for {len(tokens)} cached tokens")

        summary: Dict[str, Any] = {"total": len(tokens), "refreshed": 0, "failed": 0, "errors": []}
        for index, identity in enumerate(tokens):
            outcome = await self.scan_service.scan(
                ScanRequest(token_address=identity.address, chain_id=identity.chain_id, force_refresh=True)
            )
            if outcome.success:
                summary["refreshed"] += 1
            else:
                summary["failed"] += 1
                summary["errors"].append({"token": str(identity), "error": outcome.payload.get("code", "UNKNOWN")})
                log.warning(f"Refresh failed for {identity}: {outcome.payload.get('error')}")

            if self.delay_seconds and index < len(tokens) - 1:
                await asyncio.sleep(self.delay_seconds)

        summary["success"] = summary["failed"] == 0
        summary["duration_ms"] = int((datetime.now(timezone.utc) - started).total_seconds() * 1000)
        log.info(f"Refresh finished: {summary['refreshed']}/{summary['total']} refreshed, {summary['failed']} failed")
        return summary
