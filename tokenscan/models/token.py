"""Latest resolved identity and market snapshot per token (the parent cache row)."""

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tokenscan.models.base import Base, JSONType


class TokenDataCache(Base):
    """One row per (token_address, chain_id), replaced on every scan.

    ``provenance`` maps each resolved field to the provider that supplied it
    (``synthesized`` for a generated description).
    """

    __tablename__ = "token_data_cache"

    token_address: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[str] = mapped_column(String(20), primary_key=True)

    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    symbol: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    website_url: Mapped[str | None] = mapped_column(String, nullable=True)
    twitter_handle: Mapped[str | None] = mapped_column(String(50), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String, nullable=True)
    discord_url: Mapped[str | None] = mapped_column(String, nullable=True)
    telegram_url: Mapped[str | None] = mapped_column(String, nullable=True)

    price_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    price_change_24h: Mapped[float | None] = mapped_column(Float, nullable=True)
    market_cap_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    volume_24h_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_supply: Mapped[float | None] = mapped_column(Float, nullable=True)

    overall_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    degraded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data_sources: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    provenance: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
