# uaroute/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI
from apscheduler.schedulers.background import BackgroundScheduler
from uaroute import registry
from uaroute.config import settings
from uaroute.database import init_db
from uaroute.redirect import router as redirect_router
from uaroute.aggregator import run_aggregation, get_minute_timestamp
from uaroute.zones import refresh_zones
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Scheduler instance
scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""

    # Startup
    logger.info("Starting uaroute...")

    # Compile user agent rules up front; an InitError aborts startup
    if settings.eager_init:
        registry.init()
        logger.info("User agent rules ready")
    else:
        logger.info("User agent rules will compile on first request")

    init_db()
    logger.info("Database initialized")

    refresh_zones()

    # Schedule aggregation job (every minute at :00)
    scheduler.add_job(
        run_aggregation,
        trigger="cron",
        second=0,
        id="aggregation",
        replace_existing=True,
    )

    # Schedule zone document refresh (every N seconds)
    scheduler.add_job(
        refresh_zones,
        trigger="interval",
        seconds=settings.zones_refresh_seconds,
        id="zones_refresh",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started")

    logger.info(f"uaroute ready - listening on {settings.host}:{settings.port}")

    yield

    # Shutdown
    logger.info("Shutting down...")

    scheduler.shutdown(wait=True)
    logger.info("Scheduler stopped")

    # Flush counts of the minute in progress
    run_aggregation(get_minute_timestamp())
    logger.info("Final aggregation complete")


app = FastAPI(
    title="uaroute",
    description="Redirects zone/route links to platform-specific targets based on the User-Agent",
    version="1.0.0",
    lifespan=lifespan,
)

# Register routes
app.include_router(redirect_router)
