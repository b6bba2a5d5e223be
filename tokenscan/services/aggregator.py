"""Phased provider fan-out for a single token."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import httpx

from tokenscan.core.chains import ChainDescriptor
from tokenscan.core.config import settings
from tokenscan.core.logging import get_logger
from tokenscan.providers.base import BaseProvider, ProviderQuery, ProviderResult, ProviderStatus
from tokenscan.providers.health import ProviderHealthRegistry, provider_health
from tokenscan.schemas.records import MergedTokenRecord, TokenIdentity
from tokenscan.services.fallback import resolve_record

log = get_logger("aggregator")

PHASES = (1, 2, 3)


@dataclass
class AggregationResult:
    record: MergedTokenRecord
    results: List[ProviderResult] = field(default_factory=list)

    @property
    def provenance(self) -> Dict[str, str]:
        return self.record.provenance

    def _count(self, status: ProviderStatus) -> int:
        return sum(1 for result in self.results if result.status is status)

    @property
    def success_count(self) -> int:
        return self._count(ProviderStatus.SUCCESS)

    @property
    def no_data_count(self) -> int:
        return self._count(ProviderStatus.NO_DATA)

    @property
    def error_count(self) -> int:
        return self._count(ProviderStatus.ERROR)

    @property
    def degraded(self) -> bool:
        """At least one provider faulted; NoData alone does not degrade a scan."""
        return self.error_count > 0

    @property
    def data_sources(self) -> List[str]:
        return sorted({result.provider for result in self.results if result.ok})

    def summary(self) -> Dict[str, int]:
        return {
            "success": self.success_count,
            "no_data": self.no_data_count,
            "error": self.error_count,
        }


class Aggregator:
    """Runs provider phases in dependency order.

    Providers inside a phase run concurrently and fail independently. Phase
    N+1 starts only after every phase N call settled, and sees the record
    re-resolved from all results so far.
    """

    def __init__(
        self,
        providers: Sequence[BaseProvider],
        health: Optional[ProviderHealthRegistry] = None,
        timeout: Optional[float] = None,
    ):
        self.providers = list(providers)
        self.health = health or provider_health
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS

    def phase_providers(self, phase: int) -> List[BaseProvider]:
        return [provider for provider in self.providers if provider.phase == phase]

    async def aggregate(
        self,
        identity: TokenIdentity,
        chain: ChainDescriptor,
        request_id: str = "-",
        fetched_at: Optional[datetime] = None,
    ) -> AggregationResult:
        fetched_at = fetched_at or datetime.now(timezone.utc)
        bound = log.bind(request_id=request_id)
        results: List[ProviderResult] = []
        record = resolve_record(identity, chain, results, fetched_at)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for phase in PHASES:
                providers = self.phase_providers(phase)
                if not providers:
                    continue

                query = ProviderQuery(identity=identity, chain=chain, record=record, request_id=request_id)
                phase_results = await asyncio.gather(*(provider.fetch(query, client) for provider in providers))
                for result in phase_results:
                    self.health.record(result)
                results.extend(phase_results)
                record = resolve_record(identity, chain, results, fetched_at)

                bound.info(
                    f"Phase={phase} token={identity} "
                    f"ok={sum(1 for r in phase_results if r.ok)} "
                    f"no_data={sum(1 for r in phase_results if r.status is ProviderStatus.NO_DATA)} "
                    f"errors={sum(1 for r in phase_results if r.status is ProviderStatus.ERROR)}"
                )

        aggregation = AggregationResult(record=record, results=results)
        if aggregation.degraded:
            failed = sorted(result.provider for result in results if result.status is ProviderStatus.ERROR)
            bound.warning(f"Degraded scan for {identity}: failed providers={failed}")
        return aggregation
