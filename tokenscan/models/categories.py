"""Per-category score snapshots, one row per category per token."""

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from tokenscan.models.base import Base, JSONType


class _CategorySnapshot:
    token_address: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[str] = mapped_column(String(20), primary_key=True)

    # NULL when no provider had evidence for the category
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TokenSecurityCache(_CategorySnapshot, Base):
    __tablename__ = "token_security_cache"

    ownership_renounced: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    can_mint: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    honeypot_detected: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    freeze_authority: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    audit_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contract_verified: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_proxy: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_blacklisted: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    buy_tax: Mapped[float | None] = mapped_column(Float, nullable=True)
    sell_tax: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_liquidity_locked: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    liquidity_lock_info: Mapped[str | None] = mapped_column(String, nullable=True)
    lock_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    webacy_risk_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    webacy_severity: Mapped[str | None] = mapped_column(String(50), nullable=True)
    webacy_flags: Mapped[list | None] = mapped_column(JSONType, nullable=True)


class TokenTokenomicsCache(_CategorySnapshot, Base):
    __tablename__ = "token_tokenomics_cache"

    total_supply: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_holders: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gini_coefficient: Mapped[float | None] = mapped_column(Float, nullable=True)
    concentration_bucket: Mapped[str | None] = mapped_column(String(20), nullable=True)
    distribution_label: Mapped[str] = mapped_column(String(20), nullable=False, default="Unknown")
    verified_contract: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    possible_spam: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    tvl_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    data_confidence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class TokenLiquidityCache(_CategorySnapshot, Base):
    __tablename__ = "token_liquidity_cache"

    volume_24h_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    market_cap_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_liquidity_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    tvl_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    cex_listings: Mapped[int | None] = mapped_column(Integer, nullable=True)
    major_pairs: Mapped[list | None] = mapped_column(JSONType, nullable=True)


class TokenCommunityCache(_CategorySnapshot, Base):
    __tablename__ = "token_community_cache"

    twitter_handle: Mapped[str | None] = mapped_column(String(50), nullable=True)
    twitter_followers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discord_url: Mapped[str | None] = mapped_column(String, nullable=True)
    discord_members: Mapped[int | None] = mapped_column(Integer, nullable=True)
    telegram_url: Mapped[str | None] = mapped_column(String, nullable=True)
    telegram_members: Mapped[int | None] = mapped_column(Integer, nullable=True)


class TokenDevelopmentCache(_CategorySnapshot, Base):
    __tablename__ = "token_development_cache"

    github_url: Mapped[str | None] = mapped_column(String, nullable=True)
    stars: Mapped[int | None] = mapped_column(Integer, nullable=True)
    forks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contributors: Mapped[int | None] = mapped_column(Integer, nullable=True)
    commits_30d: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_push: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_archived: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    language: Mapped[str | None] = mapped_column(String(50), nullable=True)


CATEGORY_MODELS = {
    "security": TokenSecurityCache,
    "tokenomics": TokenTokenomicsCache,
    "liquidity": TokenLiquidityCache,
    "community": TokenCommunityCache,
    "development": TokenDevelopmentCache,
}
