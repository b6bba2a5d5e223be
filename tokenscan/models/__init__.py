from tokenscan.models.base import Base
from tokenscan.models.token import TokenDataCache
from tokenscan.models.categories import (
    CATEGORY_MODELS,
    TokenCommunityCache,
    TokenDevelopmentCache,
    TokenLiquidityCache,
    TokenSecurityCache,
    TokenTokenomicsCache,
)
from tokenscan.models.scans import TokenScan

__all__ = [
    "Base",
    "TokenDataCache",
    "TokenSecurityCache",
    "TokenTokenomicsCache",
    "TokenLiquidityCache",
    "TokenCommunityCache",
    "TokenDevelopmentCache",
    "CATEGORY_MODELS",
    "TokenScan",
]
