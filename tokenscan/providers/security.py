"""Security-risk providers: GoPlus (primary) and Webacy (fallback)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from tokenscan.providers.base import BaseProvider, ProviderQuery, clean_text, flag, safe_float

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dead"

SECURITY_FLAGS = frozenset(
    {
        "ownership_renounced",
        "can_mint",
        "honeypot_detected",
        "freeze_authority",
        "audit_status",
        "contract_verified",
        "is_proxy",
        "is_blacklisted",
    }
)


class GoPlusProvider(BaseProvider):
    """Contract security scan from GoPlus Labs."""

    name = "goplus"
    phase = 1
    chain_key = "goplus"
    fields = SECURITY_FLAGS | {"buy_tax", "sell_tax", "is_liquidity_locked", "liquidity_lock_info"}

    base_url = "https://api.gopluslabs.io/api/v1"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        data = await self._get_json(
            client,
            f"{self.base_url}/token_security/{chain}",
            params={"contract_addresses": query.address},
            headers=headers,
        )
        if not data or not isinstance(data.get("result"), dict):
            return None

        # GoPlus keys results by address but does not promise the casing
        result = data["result"]
        token = result.get(query.address) or next(
            (value for key, value in result.items() if key.lower() == query.address), None
        )
        if not token:
            return None
        return self.normalize(token)

    @staticmethod
    def normalize(token: Dict[str, Any]) -> Dict[str, Any]:
        owner = clean_text(token.get("owner_address"))
        trust_list = token.get("trust_list")
        locked, lock_info = _lp_lock(token.get("lp_holders"))

        return {
            "ownership_renounced": owner.lower() in (ZERO_ADDRESS, DEAD_ADDRESS) if owner else None,
            "can_mint": flag(token.get("is_mintable")),
            "honeypot_detected": flag(token.get("is_honeypot")),
            "freeze_authority": flag(token.get("can_take_back_ownership")),
            "audit_status": None if trust_list is None else ("verified" if trust_list == "1" else "unverified"),
            "contract_verified": flag(token.get("is_open_source")),
            "is_proxy": flag(token.get("is_proxy")),
            "is_blacklisted": flag(token.get("is_blacklisted")),
            "buy_tax": safe_float(token.get("buy_tax")),
            "sell_tax": safe_float(token.get("sell_tax")),
            "is_liquidity_locked": locked,
            "liquidity_lock_info": lock_info,
        }


def _lp_lock(holders: Any) -> tuple[Optional[bool], Optional[str]]:
    """Whether any LP holder is locked, and a human-readable lock horizon."""
    if not isinstance(holders, list) or not holders:
        return None, None

    locked_holders = [holder for holder in holders if isinstance(holder, dict) and flag(holder.get("is_locked"))]
    if not locked_holders:
        return False, "Not Locked"

    now = datetime.now(timezone.utc)
    horizons: List[int] = []
    for holder in locked_holders:
        for detail in holder.get("locked_detail") or []:
            end = _parse_time(detail.get("end_time"))
            if end and end > now:
                horizons.append((end - now).days)
    if horizons:
        return True, f"Locked for {max(horizons)} days"
    return True, "Locked"


def _parse_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        if isinstance(value, (int, float)) or str(value).isdigit():
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


class WebacyProvider(BaseProvider):
    """Address risk score from Webacy; flags are inferred from the score."""

    name = "webacy"
    phase = 1
    chain_key = "webacy"
    fields = SECURITY_FLAGS | {"webacy_risk_score", "webacy_severity", "webacy_flags"}

    base_url = "https://api.webacy.com"

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        chain = self.chain_param(query)
        if not chain:
            return None

        data = await self._get_json(
            client,
            f"{self.base_url}/addresses/{query.address}",
            params={"chain": chain},
            headers={"accept": "application/json", "x-api-key": (self.api_key or "").strip()},
        )
        if not isinstance(data, dict):
            return None
        return self.normalize(data)

    @staticmethod
    def normalize(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        risk = safe_float(data.get("riskScore"))
        if risk is None:
            risk = safe_float(data.get("overallRisk"))
        if risk is None:
            return None

        severity = clean_text(data.get("severity")) or ("high" if risk >= 70 else "medium" if risk >= 40 else "low")
        flags = []
        for item in data.get("issues") or data.get("flags") or []:
            label = item.get("flag") or item.get("name") or item.get("key") if isinstance(item, dict) else item
            if label:
                flags.append(str(label))

        # Webacy scores the address as a whole; contract flags are a coarse reading of that score.
        return {
            "webacy_risk_score": risk,
            "webacy_severity": severity,
            "webacy_flags": flags,
            "ownership_renounced": risk < 30,
            "can_mint": risk > 50,
            "honeypot_detected": risk > 70,
            "freeze_authority": risk > 60,
            "contract_verified": risk < 50,
        }
