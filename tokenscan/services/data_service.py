"""Data Service - read-only queries behind the cache and stats endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tokenscan.models import CATEGORY_MODELS, TokenDataCache, TokenScan
from tokenscan.schemas.records import CORE_FIELDS, TokenIdentity
from tokenscan.services.persistence import row_to_dict


class DataService:
    """Handles all data query operations - reads from DB only, no writes."""

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Cached token snapshots
    # -------------------------------------------------------------------------
    def get_cached_token(self, identity: TokenIdentity) -> Optional[Dict[str, Any]]:
        """Identity row plus every category row of one token, or None when never scanned."""
        key = {"token_address": identity.address, "chain_id": identity.chain_id}
        parent = self.db.get(TokenDataCache, key)
        if parent is None:
            return None

        categories: Dict[str, Optional[Dict[str, Any]]] = {}
        for name, model in CATEGORY_MODELS.items():
            row = self.db.get(model, key)
            categories[name] = row_to_dict(row) if row is not None else None

        return {
            "token_address": parent.token_address,
            "chain_id": parent.chain_id,
            "token": {name: getattr(parent, name) for name in CORE_FIELDS},
            "overall_score": parent.overall_score,
            "category_scores": {name: (row or {}).get("score") for name, row in categories.items()},
            "categories": categories,
            "provenance": parent.provenance or {},
            "degraded": parent.degraded,
            "updated_at": parent.updated_at,
        }

    def get_cached_count(self) -> int:
        return self.db.execute(select(func.count()).select_from(TokenDataCache)).scalar() or 0

    # -------------------------------------------------------------------------
    # Scan log
    # -------------------------------------------------------------------------
    def get_recent_scans(
        self,
        token_address: Optional[str] = None,
        chain_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[TokenScan]:
        stmt = select(TokenScan)
        if token_address:
            stmt = stmt.where(TokenScan.token_address == token_address)
        if chain_id:
            stmt = stmt.where(TokenScan.chain_id == chain_id)
        stmt = stmt.order_by(TokenScan.scanned_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_last_scan_at(self) -> Optional[datetime]:
        return self.db.execute(select(func.max(TokenScan.scanned_at))).scalar()

    def get_scan_counts(self) -> Dict[str, int]:
        total = self.db.execute(select(func.count()).select_from(TokenScan)).scalar() or 0
        anonymous = (
            self.db.execute(select(func.count()).select_from(TokenScan).where(TokenScan.is_anonymous.is_(True))).scalar()
            or 0
        )
        return {
            "total_scans": total,
            "anonymous_scans": anonymous,
            "attributed_scans": total - anonymous,
            "cached_tokens": self.get_cached_count(),
        }
