from pathlib import Path
from contextlib import asynccontextmanager
import asyncio
from typing import Optional

from alembic import command
from alembic.config import Config
from fastapi import FastAPI

from tokenscan.api.deps import get_refresh_service
from tokenscan.api.routes import health, refresh, scan, stats
from tokenscan.core.config import settings
from tokenscan.core.logging import get_logger


log = get_logger("app")

# Background task handle
_refresh_task: Optional[asyncio.Task] = None


def run_migrations() -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


async def run_refresh() -> None:
    """Force-refresh every cached token once."""
    log.info("Starting scheduled refresh of cached tokens...")
    try:
        summary = await get_refresh_service().run_all()
        log.info(f"Scheduled refresh completed: {summary['refreshed']}/{summary['total']} refreshed")
    except Exception as exc:
        log.exception(f"Scheduled refresh failed: {exc}")


async def scheduled_refresh_task() -> None:
    """Background task that refreshes cached tokens at the configured interval."""
    interval = settings.REFRESH_INTERVAL_SECONDS
    log.info(f"Scheduled refresh task started (interval: {interval}s)")

    while True:
        try:
            await asyncio.sleep(interval)
            await run_refresh()
        except asyncio.CancelledError:
            log.info("Scheduled refresh task cancelled")
            break


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _refresh_task

    log.info(f"Starting application in {settings.ENV.upper()} mode")
    if settings.is_production:
        log.info("Production mode: Debug disabled, docs disabled, stricter logging")
    else:
        log.info("Development mode: Debug enabled, docs available")

    # Startup
    if settings.MIGRATE_ON_STARTUP:
        try:
            run_migrations()
        except Exception:
            log.exception("Failed to apply migrations on startup")
            raise

    if settings.REFRESH_ENABLED:
        log.info("Starting scheduled refresh background task...")
        _refresh_task = asyncio.create_task(scheduled_refresh_task())
    else:
        log.info("Scheduled refresh is disabled (REFRESH_ENABLED=false)")

    yield

    # Shutdown
    if _refresh_task:
        log.info("Cancelling scheduled refresh task...")
        _refresh_task.cancel()
        try:
            await _refresh_task
        except asyncio.CancelledError:
            pass
        _refresh_task = None

    log.info("Application shutdown complete")


# Configure FastAPI based on environment
app = FastAPI(
    title="Token Health Scan",
    description="Token risk and health scoring aggregated from on-chain and market data providers",
    version="1.0.0",
    lifespan=lifespan,
    # Disable docs in production for security
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    # Debug mode only in development
    debug=settings.debug_enabled,
)


app.include_router(scan.router)
app.include_router(health.router)
app.include_router(stats.router)
app.include_router(refresh.router)
