from tokenscan.api.routes.health import router as health_router
from tokenscan.api.routes.refresh import router as refresh_router
from tokenscan.api.routes.scan import router as scan_router
from tokenscan.api.routes.stats import router as stats_router

__all__ = ["health_router", "refresh_router", "scan_router", "stats_router"]
