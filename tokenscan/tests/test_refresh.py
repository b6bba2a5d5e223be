"""Scheduled refresh tests"""

import pytest

from tokenscan.schemas.api import ScanRequest
from tokenscan.schemas.records import TokenIdentity
from tokenscan.services.refresh_service import RefreshService
from tokenscan.services.scan_service import ScanService

from conftest import PENDLE

OTHER = "0x" + "a" * 40


class TestRefreshService:
    """Test the sequential re-scan of cached tokens"""

    @pytest.mark.asyncio
    async def test_force_refreshes_every_cached_token(self, pendle_providers, repository):
        scan_service = ScanService(providers=pendle_providers, repository=repository, deadline_seconds=5.0)
        await scan_service.scan(ScanRequest(token_address=PENDLE))
        await scan_service.scan(ScanRequest(token_address=OTHER))

        summary = await RefreshService(scan_service, repository, delay_seconds=0).run_all()

        assert summary["total"] == 2
        assert summary["refreshed"] == 2
        assert summary["failed"] == 0
        assert summary["success"] is True
        # two initial scans plus two refreshes, none served from cache
        assert len(pendle_providers[0].calls) == 4
        events = await repository.recent_scan_events()
        assert all(event["is_anonymous"] for event in events)
        assert not any(event["from_cache"] for event in events)

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_run_continues(self, pendle_providers, repository):
        scan_service = ScanService(providers=pendle_providers, repository=repository, deadline_seconds=5.0)
        await scan_service.scan(ScanRequest(token_address=PENDLE))
        await scan_service.scan(ScanRequest(token_address=OTHER))
        for provider in pendle_providers:
            provider.values = None

        summary = await RefreshService(scan_service, repository, delay_seconds=0).run_all()

        assert summary["total"] == 2
        assert summary["failed"] == 2
        assert summary["success"] is False
        assert {error["error"] for error in summary["errors"]} == {"NO_DATA"}
        assert await repository.load_snapshot(TokenIdentity(PENDLE, "0x1")) is not None

    @pytest.mark.asyncio
    async def test_limit_takes_stalest(self, pendle_providers, repository):
        scan_service = ScanService(providers=pendle_providers, repository=repository, deadline_seconds=5.0)
        await scan_service.scan(ScanRequest(token_address=PENDLE))
        await scan_service.scan(ScanRequest(token_address=OTHER))

        summary = await RefreshService(scan_service, repository, delay_seconds=0).run_all(limit=1)

        assert summary["total"] == 1
        assert summary["refreshed"] == 1
