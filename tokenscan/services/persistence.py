"""Scan cache persistence.

Every table write runs in its own short transaction, so one failing category
never rolls back its siblings. Blocking SQLAlchemy work is pushed off the
event loop with ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tokenscan.core.db import SessionLocal
from tokenscan.core.errors import PersistenceError
from tokenscan.core.logging import get_logger
from tokenscan.models import CATEGORY_MODELS, TokenDataCache, TokenScan
from tokenscan.schemas.records import CATEGORIES, CORE_FIELDS, CategoryScores, MergedTokenRecord, TokenIdentity
from tokenscan.services.scoring import distribution_label, parse_lock_days, tokenomics_confidence

log = get_logger("persistence")

KEY_COLUMNS = ("token_address", "chain_id")


def row_to_dict(row: Any) -> Dict[str, Any]:
    return {column.name: getattr(row, column.key) for column in row.__table__.columns}


# -----------------------------------------------------------------------------
# Row builders
# -----------------------------------------------------------------------------
def build_category_rows(record: MergedTokenRecord, scores: CategoryScores) -> Dict[str, Dict[str, Any]]:
    """Column values of each category snapshot, keyed by category."""
    return {
        "security": {
            "score": scores.security,
            "ownership_renounced": record.ownership_renounced,
            "can_mint": record.can_mint,
            "honeypot_detected": record.honeypot_detected,
            "freeze_authority": record.freeze_authority,
            "audit_status": record.audit_status,
            "contract_verified": record.contract_verified,
            "is_proxy": record.is_proxy,
            "is_blacklisted": record.is_blacklisted,
            "buy_tax": record.buy_tax,
            "sell_tax": record.sell_tax,
            "is_liquidity_locked": record.is_liquidity_locked,
            "liquidity_lock_info": record.liquidity_lock_info,
            "lock_days": parse_lock_days(record.is_liquidity_locked, record.liquidity_lock_info),
            "webacy_risk_score": record.webacy_risk_score,
            "webacy_severity": record.webacy_severity,
            "webacy_flags": record.webacy_flags,
        },
        "tokenomics": {
            "score": scores.tokenomics,
            "total_supply": record.total_supply,
            "total_holders": record.total_holders,
            "gini_coefficient": record.gini_coefficient,
            "concentration_bucket": record.concentration_bucket,
            "distribution_label": distribution_label(record.concentration_bucket),
            "verified_contract": record.verified_contract,
            "possible_spam": record.possible_spam,
            "tvl_usd": record.tvl_usd,
            "data_confidence": tokenomics_confidence(record),
        },
        "liquidity": {
            "score": scores.liquidity,
            "volume_24h_usd": record.volume_24h_usd,
            "market_cap_usd": record.market_cap_usd,
            "total_liquidity_usd": record.total_liquidity_usd,
            "tvl_usd": record.tvl_usd,
            "cex_listings": record.cex_listings,
            "major_pairs": record.major_pairs,
        },
        "community": {
            "score": scores.community,
            "twitter_handle": record.twitter_handle,
            "twitter_followers": record.twitter_followers,
            "discord_url": record.discord_url,
            "discord_members": record.discord_members,
            "telegram_url": record.telegram_url,
            "telegram_members": record.telegram_members,
        },
        "development": {
            "score": scores.development,
            "github_url": record.github_url,
            "stars": record.github_stars,
            "forks": record.github_forks,
            "contributors": record.github_contributors,
            "commits_30d": record.github_commits_30d,
            "last_push": record.github_last_push,
            "is_archived": record.github_archived,
            "language": record.github_language,
        },
    }


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------
@dataclass
class PersistenceOutcome:
    """Which writes of one scan failed; an empty ``failures`` means all landed."""

    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class CachedSnapshot:
    identity: Dict[str, Any]
    categories: Dict[str, Optional[Dict[str, Any]]]

    @property
    def updated_at(self) -> datetime:
        value = self.identity["updated_at"]
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    @property
    def overall_score(self) -> int:
        return self.identity["overall_score"]

    @property
    def scores(self) -> CategoryScores:
        return CategoryScores(
            **{name: (row or {}).get("score") for name, row in self.categories.items() if name in CATEGORIES}
        )

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.updated_at).total_seconds()


class ScanRepository:
    """Cache and scan-log writes for one token key at a time."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    # -------------------------------------------------------------------------
    # Transaction plumbing
    # -------------------------------------------------------------------------
    def _run(self, table: str, work: Callable[[Session], Any]) -> Any:
        session = self.session_factory()
        try:
            result = work(session)
            session.commit()
            return result
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Write to {table} failed: {exc}", table=table) from exc
        finally:
            session.close()

    @staticmethod
    def _insert(session: Session, model: Any):
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        raise PersistenceError(f"Upsert not supported on dialect {dialect}", table=model.__tablename__)

    def _upsert(self, model: Any, values: Dict[str, Any]) -> None:
        def work(session: Session) -> None:
            stmt = self._insert(session, model).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(KEY_COLUMNS),
                set_={name: stmt.excluded[name] for name in values if name not in KEY_COLUMNS},
            )
            session.execute(stmt)

        self._run(model.__tablename__, work)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------
    def _invalidate(self, identity: TokenIdentity) -> List[str]:
        failed: List[str] = []
        # Children before the parent identity row
        for model in list(CATEGORY_MODELS.values()) + [TokenDataCache]:
            try:
                self._run(
                    model.__tablename__,
                    lambda session, model=model: session.execute(
                        delete(model).where(
                            model.token_address == identity.address,
                            model.chain_id == identity.chain_id,
                        )
                    ),
                )
            except PersistenceError as exc:
                log.warning(f"Invalidate skipped table={exc.table} token={identity}: {exc.message}")
                failed.append(model.__tablename__)
        return failed

    async def invalidate(self, identity: TokenIdentity) -> List[str]:
        """Delete every cached row of ``identity``; returns the tables that failed."""
        return await asyncio.to_thread(self._invalidate, identity)

    # -------------------------------------------------------------------------
    # Upserts
    # -------------------------------------------------------------------------
    def _upsert_identity(
        self,
        identity: TokenIdentity,
        record: MergedTokenRecord,
        overall: int,
        degraded: bool = False,
        data_sources: Optional[List[str]] = None,
    ) -> None:
        values: Dict[str, Any] = {
            "token_address": identity.address,
            "chain_id": identity.chain_id,
            "overall_score": overall,
            "degraded": degraded,
            "data_sources": data_sources or [],
            "provenance": dict(record.provenance),
            "updated_at": record.fetched_at,
        }
        values.update({name: getattr(record, name) for name in CORE_FIELDS})
        self._upsert(TokenDataCache, values)

    async def upsert_identity(
        self,
        identity: TokenIdentity,
        record: MergedTokenRecord,
        overall: int,
        degraded: bool = False,
        data_sources: Optional[List[str]] = None,
    ) -> None:
        await asyncio.to_thread(self._upsert_identity, identity, record, overall, degraded, data_sources)

    def _upsert_category(
        self,
        identity: TokenIdentity,
        category: str,
        data: Dict[str, Any],
        updated_at: Optional[datetime] = None,
    ) -> None:
        model = CATEGORY_MODELS[category]
        values = {
            "token_address": identity.address,
            "chain_id": identity.chain_id,
            "updated_at": updated_at or datetime.now(timezone.utc),
            **data,
        }
        self._upsert(model, values)

    async def upsert_category(
        self,
        identity: TokenIdentity,
        category: str,
        data: Dict[str, Any],
        updated_at: Optional[datetime] = None,
    ) -> None:
        await asyncio.to_thread(self._upsert_category, identity, category, data, updated_at)

    async def save_scan(
        self,
        identity: TokenIdentity,
        record: MergedTokenRecord,
        scores: CategoryScores,
        overall: int,
        degraded: bool = False,
        data_sources: Optional[List[str]] = None,
    ) -> PersistenceOutcome:
        """Invalidate, then write the identity row and all five categories independently."""
        outcome = PersistenceOutcome()
        for table in await self.invalidate(identity):
            outcome.failures[table] = "invalidate failed"

        writes = {TokenDataCache.__tablename__: self.upsert_identity(identity, record, overall, degraded, data_sources)}
        for category, data in build_category_rows(record, scores).items():
            writes[CATEGORY_MODELS[category].__tablename__] = self.upsert_category(
                identity, category, data, record.fetched_at
            )

        results = await asyncio.gather(*writes.values(), return_exceptions=True)
        for table, result in zip(writes, results):
            if isinstance(result, PersistenceError):
                log.error(f"Persist failed table={table} token={identity}: {result.message}")
                outcome.failures[table] = result.code
            elif isinstance(result, BaseException):
                raise result
        return outcome

    # -------------------------------------------------------------------------
    # Scan log
    # -------------------------------------------------------------------------
    def _record_scan_event(
        self,
        identity: TokenIdentity,
        user_id: Optional[str],
        overall: int,
        privileged: bool = False,
        from_cache: bool = False,
    ) -> None:
        event = TokenScan(
            user_id=user_id,
            token_address=identity.address,
            chain_id=identity.chain_id,
            score_total=overall,
            privileged=privileged,
            is_anonymous=user_id is None,
            from_cache=from_cache,
            scanned_at=datetime.now(timezone.utc),
        )
        self._run(TokenScan.__tablename__, lambda session: session.add(event))

    async def record_scan_event(
        self,
        identity: TokenIdentity,
        user_id: Optional[str],
        overall: int,
        privileged: bool = False,
        from_cache: bool = False,
    ) -> None:
        await asyncio.to_thread(self._record_scan_event, identity, user_id, overall, privileged, from_cache)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def _load_snapshot(self, identity: TokenIdentity) -> Optional[CachedSnapshot]:
        with self.session_factory() as session:
            key = {"token_address": identity.address, "chain_id": identity.chain_id}
            parent = session.get(TokenDataCache, key)
            if parent is None:
                return None
            categories = {}
            for name, model in CATEGORY_MODELS.items():
                row = session.get(model, key)
                categories[name] = row_to_dict(row) if row is not None else None
            return CachedSnapshot(identity=row_to_dict(parent), categories=categories)

    async def load_snapshot(self, identity: TokenIdentity) -> Optional[CachedSnapshot]:
        return await asyncio.to_thread(self._load_snapshot, identity)

    def _list_cached_tokens(self, limit: Optional[int] = None) -> List[TokenIdentity]:
        with self.session_factory() as session:
            stmt = select(TokenDataCache.token_address, TokenDataCache.chain_id).order_by(
                TokenDataCache.updated_at.asc()
            )
            if limit:
                stmt = stmt.limit(limit)
            return [TokenIdentity(address, chain_id) for address, chain_id in session.execute(stmt)]

    async def list_cached_tokens(self, limit: Optional[int] = None) -> List[TokenIdentity]:
        """Cached keys, stalest first."""
        return await asyncio.to_thread(self._list_cached_tokens, limit)

    def _recent_scan_events(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self.session_factory() as session:
            rows = session.scalars(select(TokenScan).order_by(TokenScan.scanned_at.desc()).limit(limit)).all()
            return [row_to_dict(row) for row in rows]

    async def recent_scan_events(self, limit: int = 50) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._recent_scan_events, limit)
