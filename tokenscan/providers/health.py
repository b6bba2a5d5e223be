"""Per-provider health accounting.

NoData is counted separately from Error: a provider that simply has never
seen a token is healthy; only Error results degrade it.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

from tokenscan.providers.base import ProviderResult, ProviderStatus

DEGRADED_ERROR_RATE = 0.25
MAX_RECENT_ERRORS = 10


@dataclass
class ProviderHealth:
    provider: str
    total_requests: int = 0
    successful_requests: int = 0
    no_data_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    recent_errors: Deque[str] = field(default_factory=lambda: deque(maxlen=MAX_RECENT_ERRORS))

    @property
    def error_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.failed_requests / self.total_requests

    @property
    def status(self) -> str:
        if not self.total_requests:
            return "unknown"
        return "degraded" if self.error_rate >= DEGRADED_ERROR_RATE else "healthy"

    def to_dict(self) -> Dict[str, Any]:
        avg_latency = int(self.total_latency_ms / self.total_requests) if self.total_requests else 0
        return {
            "provider": self.provider,
            "status": self.status,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "no_data_requests": self.no_data_requests,
            "failed_requests": self.failed_requests,
            "error_rate": round(self.error_rate, 3),
            "avg_latency_ms": avg_latency,
            "last_success_at": self.last_success_at,
            "last_failure_at": self.last_failure_at,
            "recent_errors": list(self.recent_errors),
        }


class ProviderHealthRegistry:
    """In-process counters, fed by the aggregator after every provider call."""

    def __init__(self) -> None:
        self._providers: Dict[str, ProviderHealth] = {}

    def record(self, result: ProviderResult) -> None:
        health = self._providers.setdefault(result.provider, ProviderHealth(result.provider))
        now = datetime.now(timezone.utc)
        health.total_requests += 1
        health.total_latency_ms += result.latency_ms

        if result.status is ProviderStatus.SUCCESS:
            health.successful_requests += 1
            health.last_success_at = now
        elif result.status is ProviderStatus.NO_DATA:
            health.no_data_requests += 1
        else:
            health.failed_requests += 1
            health.last_failure_at = now
            health.recent_errors.append(f"{now.isoformat()}: {result.error}")

    def get(self, provider: str) -> Optional[ProviderHealth]:
        return self._providers.get(provider)

    def snapshot(self) -> list[Dict[str, Any]]:
        return [self._providers[name].to_dict() for name in sorted(self._providers)]

    def reset(self) -> None:
        self._providers.clear()


provider_health = ProviderHealthRegistry()
