"""Scan guard: validation, deadline, cache read, and the fetch/score/persist pipeline."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from tokenscan.core.chains import ChainDescriptor, require_chain
from tokenscan.core.config import settings
from tokenscan.core.errors import (
    InternalError,
    NoDataError,
    PersistenceError,
    ScanError,
    ScanTimeoutError,
    ValidationError,
)
from tokenscan.core.logging import get_logger
from tokenscan.core.validation import canonicalize_address
from tokenscan.providers import build_default_providers
from tokenscan.providers.base import BaseProvider
from tokenscan.providers.health import ProviderHealthRegistry
from tokenscan.schemas.api import ScanRequest
from tokenscan.schemas.records import CORE_FIELDS, TokenIdentity
from tokenscan.services.aggregator import Aggregator
from tokenscan.services.persistence import CachedSnapshot, ScanRepository
from tokenscan.services.scoring import overall_score, score_categories

log = get_logger("scan")

CACHE_SOURCE = "cache"


class ScanState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    CHAIN_RESOLVED = "chain_resolved"
    FETCHING = "fetching"
    SCORING = "scoring"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset({ScanState.COMPLETED, ScanState.FAILED, ScanState.TIMED_OUT})


@dataclass
class ScanContext:
    """Per-scan state machine; ``history`` keeps every state entered, in order."""

    request_id: str
    started: float = field(default_factory=time.perf_counter)
    state: ScanState = ScanState.RECEIVED
    history: List[ScanState] = field(default_factory=lambda: [ScanState.RECEIVED])

    def enter(self, state: ScanState) -> None:
        if self.state in TERMINAL_STATES:
            return
        self.state = state
        self.history.append(state)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed * 1000)


@dataclass
class ScanOutcome:
    state: ScanState
    payload: Dict[str, Any]
    history: List[ScanState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is ScanState.COMPLETED


class ScanService:
    """Runs one scan end to end under a single deadline.

    The deadline starts when the request is received and covers fetching,
    scoring and persisting. On expiry the pipeline task is cancelled, so
    provider results arriving later are discarded; writes that already
    committed stay committed.
    """

    def __init__(
        self,
        providers: Optional[Sequence[BaseProvider]] = None,
        repository: Optional[ScanRepository] = None,
        deadline_seconds: Optional[float] = None,
        cache_ttl_seconds: Optional[int] = None,
        health: Optional[ProviderHealthRegistry] = None,
    ):
        self.aggregator = Aggregator(
            providers if providers is not None else build_default_providers(settings),
            health=health,
        )
        self.repository = repository or ScanRepository()
        self.deadline_seconds = deadline_seconds or settings.SCAN_DEADLINE_SECONDS
        self.cache_ttl_seconds = settings.CACHE_TTL_SECONDS if cache_ttl_seconds is None else cache_ttl_seconds

    async def scan(self, request: ScanRequest, request_id: Optional[str] = None) -> ScanOutcome:
        ctx = ScanContext(request_id=request_id or uuid.uuid4().hex[:12])
        bound = log.bind(request_id=ctx.request_id)

        try:
            ctx.enter(ScanState.VALIDATING)
            address = canonicalize_address(request.token_address)
            chain = require_chain(request.chain_id)
            identity = TokenIdentity(address=address, chain_id=chain.chain_id)
            ctx.enter(ScanState.CHAIN_RESOLVED)
            bound.info(f"Scan received token={identity} force_refresh={request.force_refresh}")

            remaining = max(self.deadline_seconds - ctx.elapsed, 0.0)
            payload = await asyncio.wait_for(self._run_pipeline(ctx, request, identity, chain), timeout=remaining)
            ctx.enter(ScanState.COMPLETED)
            payload["processing_time_ms"] = ctx.elapsed_ms
            bound.info(
                f"Scan completed token={identity} overall={payload['overall_score']} "
                f"degraded={payload['degraded']} in {ctx.elapsed_ms}ms"
            )
            return ScanOutcome(ctx.state, payload, ctx.history)

        except ValidationError as exc:
            bound.info(f"Scan rejected: {exc.message}")
            return self._failure(ctx, ScanState.FAILED, exc)
        except asyncio.TimeoutError:
            bound.warning(f"Scan timed out after {ctx.elapsed_ms}ms in state={ctx.state.value}")
            return self._failure(ctx, ScanState.TIMED_OUT, ScanTimeoutError())
        except ScanError as exc:
            bound.warning(f"Scan failed: {exc}")
            return self._failure(ctx, ScanState.FAILED, exc)
        except Exception as exc:  # noqa: BLE001
            bound.exception(f"Unexpected scan failure: {exc}")
            return self._failure(ctx, ScanState.FAILED, InternalError())

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------
    async def _run_pipeline(
        self,
        ctx: ScanContext,
        request: ScanRequest,
        identity: TokenIdentity,
        chain: ChainDescriptor,
    ) -> Dict[str, Any]:
        bound = log.bind(request_id=ctx.request_id)

        if not request.force_refresh and self.cache_ttl_seconds > 0:
            snapshot = await self._fresh_snapshot(identity)
            if snapshot is not None:
                bound.info(f"Cache hit token={identity} age={int(snapshot.age_seconds())}s")
                await self._record_event(ctx, identity, request, snapshot.overall_score, from_cache=True)
                return self._cached_payload(ctx, identity, snapshot)

        ctx.enter(ScanState.FETCHING)
        fetched_at = datetime.now(timezone.utc)
        aggregation = await self.aggregator.aggregate(identity, chain, ctx.request_id, fetched_at)
        if aggregation.success_count == 0:
            raise NoDataError(f"No provider returned data for {identity}", request_id=ctx.request_id)

        ctx.enter(ScanState.SCORING)
        record = aggregation.record
        scores = score_categories(record)
        overall = overall_score(scores)

        ctx.enter(ScanState.PERSISTING)
        outcome = await self.repository.save_scan(
            identity,
            record,
            scores,
            overall,
            degraded=aggregation.degraded,
            data_sources=aggregation.data_sources,
        )
        failures = dict(outcome.failures)
        if not await self._record_event(ctx, identity, request, overall):
            failures["token_scans"] = PersistenceError.code

        return {
            "success": True,
            "token_address": identity.address,
            "chain_id": identity.chain_id,
            "token": {name: getattr(record, name) for name in CORE_FIELDS},
            "overall_score": overall,
            "category_scores": scores.as_dict(),
            "data_sources": aggregation.data_sources,
            "provenance": dict(record.provenance),
            "provider_summary": aggregation.summary(),
            "degraded": aggregation.degraded,
            "from_cache": False,
            "persistence_failures": failures,
            "request_id": ctx.request_id,
        }

    async def _fresh_snapshot(self, identity: TokenIdentity) -> Optional[CachedSnapshot]:
        try:
            snapshot = await self.repository.load_snapshot(identity)
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Cache read failed for {identity}, scanning instead: {exc}")
            return None
        if snapshot is None or snapshot.age_seconds() > self.cache_ttl_seconds:
            return None
        return snapshot

    async def _record_event(
        self,
        ctx: ScanContext,
        identity: TokenIdentity,
        request: ScanRequest,
        overall: int,
        from_cache: bool = False,
    ) -> bool:
        try:
            await self.repository.record_scan_event(
                identity,
                request.user_id,
                overall,
                privileged=request.privileged,
                from_cache=from_cache,
            )
        except PersistenceError as exc:
            log.bind(request_id=ctx.request_id).error(f"Scan event not recorded for {identity}: {exc.message}")
            return False
        return True

    @staticmethod
    def _cached_payload(ctx: ScanContext, identity: TokenIdentity, snapshot: CachedSnapshot) -> Dict[str, Any]:
        return {
            "success": True,
            "token_address": identity.address,
            "chain_id": identity.chain_id,
            "token": {name: snapshot.identity.get(name) for name in CORE_FIELDS},
            "overall_score": snapshot.overall_score,
            "category_scores": snapshot.scores.as_dict(),
            "data_sources": [CACHE_SOURCE],
            "provenance": snapshot.identity.get("provenance") or {},
            "provider_summary": {},
            "degraded": bool(snapshot.identity.get("degraded")),
            "from_cache": True,
            "persistence_failures": {},
            "request_id": ctx.request_id,
        }

    @staticmethod
    def _failure(ctx: ScanContext, state: ScanState, error: ScanError) -> ScanOutcome:
        ctx.enter(state)
        error.request_id = ctx.request_id
        payload = {"success": False, **error.to_dict(), "processing_time_ms": ctx.elapsed_ms}
        return ScanOutcome(ctx.state, payload, ctx.history)
