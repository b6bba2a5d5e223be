from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ScanRequest(BaseModel):
    """Inbound scan request. Address and chain are validated by the scan guard, not here."""

    token_address: str
    chain_id: str = "0x1"
    user_id: Optional[str] = None
    force_refresh: bool = False
    privileged: bool = False


class CategoryScoresOut(BaseModel):
    security: Optional[int] = None
    tokenomics: Optional[int] = None
    liquidity: Optional[int] = None
    community: Optional[int] = None
    development: Optional[int] = None


class TokenProfileOut(BaseModel):
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


class ScanResponse(BaseModel):
    success: bool = True
    token_address: str
    chain_id: str
    token: TokenProfileOut
    overall_score: int = Field(ge=0, le=100)
    category_scores: CategoryScoresOut
    data_sources: list[str]
    provenance: dict[str, str]
    provider_summary: dict[str, int] = {}
    degraded: bool = False
    from_cache: bool = False
    persistence_failures: dict[str, str] = {}
    request_id: str
    processing_time_ms: int


class ScanErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    status: str
    request_id: Optional[str] = None
    processing_time_ms: int


class CachedTokenResponse(BaseModel):
    token_address: str
    chain_id: str
    token: TokenProfileOut
    overall_score: int
    category_scores: CategoryScoresOut
    categories: dict[str, Optional[dict[str, Any]]]
    provenance: dict[str, str]
    degraded: bool
    updated_at: datetime


class HealthResponse(BaseModel):
    database: str
    last_scan_at: datetime | None


class ProviderHealthOut(BaseModel):
    provider: str
    status: str
    total_requests: int
    successful_requests: int
    no_data_requests: int
    failed_requests: int
    error_rate: float
    avg_latency_ms: int
    last_success_at: datetime | None = None
    last_failure_at: datetime | None = None
    recent_errors: list[str] = []


class ScanEventOut(BaseModel):
    id: str
    user_id: str | None = None
    token_address: str
    chain_id: str
    score_total: int
    privileged: bool
    is_anonymous: bool
    from_cache: bool
    scanned_at: datetime

    class Config:
        from_attributes = True


class StatsResponse(BaseModel):
    total_scans: int
    anonymous_scans: int
    attributed_scans: int
    cached_tokens: int
    recent_scans: list[ScanEventOut]


class RefreshResponse(BaseModel):
    success: bool
    total: int
    refreshed: int
    failed: int
    errors: list[dict[str, str]] = []
