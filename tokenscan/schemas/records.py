"""Typed in-flight records for a single scan."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

CATEGORIES = ("security", "tokenomics", "liquidity", "community", "development")

# Logical fields shown on the token profile; each carries provenance.
CORE_FIELDS = (
    "name",
    "symbol",
    "description",
    "logo_url",
    "website_url",
    "twitter_handle",
    "github_url",
    "discord_url",
    "telegram_url",
    "price_usd",
    "price_change_24h",
    "market_cap_usd",
    "volume_24h_usd",
    "total_supply",
)

SECURITY_FIELDS = (
    "ownership_renounced",
    "can_mint",
    "honeypot_detected",
    "freeze_authority",
    "audit_status",
    "contract_verified",
    "is_proxy",
    "is_blacklisted",
    "buy_tax",
    "sell_tax",
    "is_liquidity_locked",
    "liquidity_lock_info",
    "webacy_risk_score",
    "webacy_severity",
    "webacy_flags",
)

ENHANCED_FIELDS = (
    "coingecko_id",
    "verified_contract",
    "possible_spam",
    "gini_coefficient",
    "concentration_bucket",
    "total_holders",
    "total_liquidity_usd",
    "major_pairs",
    "tvl_usd",
    "cex_listings",
    "twitter_followers",
    "discord_members",
    "telegram_members",
    "github_stars",
    "github_forks",
    "github_contributors",
    "github_commits_30d",
    "github_last_push",
    "github_archived",
    "github_language",
)

MERGED_FIELDS = CORE_FIELDS + SECURITY_FIELDS + ENHANCED_FIELDS


@dataclass(frozen=True)
class TokenIdentity:
    """Natural key of a scan: canonical address + canonical chain id."""

    address: str
    chain_id: str

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.address}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MergedTokenRecord:
    """Every resolved field of a token, ``None`` meaning "no provider knew".

    A provider-confirmed zero is stored as ``0``; absence is always ``None``.
    """

    address: str
    chain_id: str
    chain_name: Optional[str] = None
    fetched_at: datetime = field(default_factory=_utcnow)

    # identity and market
    name: Optional[str] = None
    symbol: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    github_url: Optional[str] = None
    discord_url: Optional[str] = None
    telegram_url: Optional[str] = None
    price_usd: Optional[float] = None
    price_change_24h: Optional[float] = None
    market_cap_usd: Optional[float] = None
    volume_24h_usd: Optional[float] = None
    total_supply: Optional[float] = None

    # security
    ownership_renounced: Optional[bool] = None
    can_mint: Optional[bool] = None
    honeypot_detected: Optional[bool] = None
    freeze_authority: Optional[bool] = None
    audit_status: Optional[str] = None
    contract_verified: Optional[bool] = None
    is_proxy: Optional[bool] = None
    is_blacklisted: Optional[bool] = None
    buy_tax: Optional[float] = None
    sell_tax: Optional[float] = None
    is_liquidity_locked: Optional[bool] = None
    liquidity_lock_info: Optional[str] = None
    webacy_risk_score: Optional[float] = None
    webacy_severity: Optional[str] = None
    webacy_flags: Optional[List[str]] = None

    # tokenomics, liquidity, community, development
    coingecko_id: Optional[str] = None
    verified_contract: Optional[bool] = None
    possible_spam: Optional[bool] = None
    gini_coefficient: Optional[float] = None
    concentration_bucket: Optional[str] = None
    total_holders: Optional[int] = None
    total_liquidity_usd: Optional[float] = None
    major_pairs: Optional[List[Dict[str, Any]]] = None
    tvl_usd: Optional[float] = None
    cex_listings: Optional[int] = None
    twitter_followers: Optional[int] = None
    discord_members: Optional[int] = None
    telegram_members: Optional[int] = None
    github_stars: Optional[int] = None
    github_forks: Optional[int] = None
    github_contributors: Optional[int] = None
    github_commits_30d: Optional[int] = None
    github_last_push: Optional[datetime] = None
    github_archived: Optional[bool] = None
    github_language: Optional[str] = None

    provenance: Dict[str, str] = field(default_factory=dict)

    @property
    def identity(self) -> TokenIdentity:
        return TokenIdentity(self.address, self.chain_id)

    def has_any(self, names: tuple[str, ...] | list[str]) -> bool:
        return any(getattr(self, name) is not None for name in names)

    def resolved_fields(self) -> Dict[str, Any]:
        """Only the merged fields that carry a value."""
        return {name: getattr(self, name) for name in MERGED_FIELDS if getattr(self, name) is not None}


@dataclass(frozen=True)
class CategoryScores:
    security: Optional[int] = None
    tokenomics: Optional[int] = None
    liquidity: Optional[int] = None
    community: Optional[int] = None
    development: Optional[int] = None

    def as_dict(self) -> Dict[str, Optional[int]]:
        return asdict(self)

    def available(self) -> List[int]:
        return [getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None]
