import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.api.routes import router
from app.cache import db as cache_db
from app.core.logging import configure_logging
from app.services.resolve import get_resolver
from app.services.sweep import CacheSweeper

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Initialize the cache and start the expiry sweep on startup,
    flush pending cache writes on shutdown.
    """
    # Startup
    configure_logging()
    logger.info("Initializing Search Title Resolver...")
    cache_db.init_db()
    sweeper = CacheSweeper()
    sweeper.start()
    app.state.sweeper = sweeper
    logger.info("Database initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down Search Title Resolver...")
    await sweeper.stop()
    await get_resolver().drain()

app = FastAPI(
    title="Search Title Resolver",
    description="API for resolving full page titles of truncated search result links",
    version="1.0.0",
    lifespan=lifespan
)

# Include API routes
app.include_router(router)

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "Search Title Resolver",
        "version": "1.0.0",
        "endpoints": {
            "title": "POST /title",
            "health": "GET /health",
            "cache_stats": "GET /cache/stats"
        }
    }
