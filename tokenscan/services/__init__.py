# Services package
from tokenscan.services.aggregator import AggregationResult, Aggregator
from tokenscan.services.data_service import DataService
from tokenscan.services.persistence import ScanRepository
from tokenscan.services.refresh_service import RefreshService
from tokenscan.services.scan_service import ScanService, ScanState

__all__ = [
    "AggregationResult",
    "Aggregator",
    "DataService",
    "ScanRepository",
    "RefreshService",
    "ScanService",
    "ScanState",
]
