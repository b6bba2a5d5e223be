"""API dependencies"""

from typing import Optional

from tokenscan.core.db import get_db
from tokenscan.services.refresh_service import RefreshService
from tokenscan.services.scan_service import ScanService

_scan_service: Optional[ScanService] = None


def get_scan_service() -> ScanService:
    """Process-wide scan service; providers are built once from settings."""
    global _scan_service
    if _scan_service is None:
        _scan_service = ScanService()
    return _scan_service


def get_refresh_service() -> RefreshService:
    scan_service = get_scan_service()
    return RefreshService(scan_service=scan_service, repository=scan_service.repository)


__all__ = ["get_db", "get_scan_service", "get_refresh_service"]
