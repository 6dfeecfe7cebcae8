"""
FastAPI Main Application with polling refresh loops
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from stockboard.config import settings
from stockboard.core.logging import setup_logging
from stockboard.bootstrap import RefreshLoops, build_refresh_loops, build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of all services
    """
    # ===================
    # STARTUP
    # ===================
    setup_logging(
        settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        max_bytes=settings.LOG_MAX_BYTES,
        backup_count=settings.LOG_BACKUP_COUNT,
    )
    logger.info("=" * 60)
    logger.info("🚀 Starting Stockboard")
    logger.info("=" * 60)

    # 1. Configuration, provider, storage
    logger.info("⚙️  Step 1/2: Loading configuration and services...")
    services = build_services()
    app.state.config_engine = services.config_engine
    app.state.quote_service = services.quote_service
    app.state.portfolio_service = services.portfolio_service
    logger.info(f"   📊 Tracked indices: {', '.join(services.config_engine.indices)}")
    logger.info(f"   💼 Holdings loaded: {len(services.repository.list())}")

    # 2. Refresh loops
    logger.info("🔄 Step 2/2: Starting refresh loops...")
    loops: RefreshLoops = build_refresh_loops(services)
    app.state.market_refresher = loops.market
    app.state.popular_refresher = loops.popular
    app.state.portfolio_refresher = loops.portfolio
    if settings.SCHEDULER_ENABLED:
        loops.start()
        logger.info("✅ Refresh loops running")
    else:
        logger.info("⏰ Scheduler disabled; snapshots refresh on demand only")

    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down Stockboard...")
    loops.stop()
    logger.info("👋 Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Stockboard",
    description="Stock quotes, market indices and a personal portfolio tracker",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Service and refresh loop health"""
    loops = {}
    for name in ("market_refresher", "popular_refresher", "portfolio_refresher"):
        loop = getattr(app.state, name, None)
        loops[name] = loop.display_state if loop is not None else "not_initialized"
    return {
        "status": "healthy",
        "service": "Stockboard",
        "version": "1.0.0",
        "scheduler": "enabled" if settings.SCHEDULER_ENABLED else "disabled",
        "refresh_loops": loops,
    }


# Import and include routers
from stockboard.api.routes import dashboard, market_data, portfolio, stocks  # noqa: E402

app.include_router(market_data.router, prefix="/api/market-data", tags=["Market Data"])
app.include_router(stocks.router, prefix="/api/stocks", tags=["Stocks"])
app.include_router(portfolio.router, prefix="/api/portfolio", tags=["Portfolio"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stockboard.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
