"""AdLens — FastAPI Application Entry Point.

Syncs ad structure and daily insights from the upstream ads API into a local
store, then serves paginated, KPI-enriched performance reports.
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from adlens.analyzer.report_service import PerformanceService
from adlens.api.entity_routes import router as entity_router
from adlens.api.performance_routes import router as performance_router
from adlens.api.sync_routes import router as sync_router
from adlens.config import settings
from adlens.connectors.upstream.client import UpstreamClient
from adlens.connectors.upstream.endpoints import UpstreamEndpoints
from adlens.core.cache import TTLCache
from adlens.core.logging import get_logger
from adlens.database import engine as default_engine, init_db, test_connection
from adlens.scheduler.jobs import start_scheduler, stop_scheduler
from adlens.storage.entity_store import EntityStore
from adlens.sync.orchestrator import DataSyncService
from adlens.sync.progress import SyncProgressTracker

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 AdLens starting up...")
    logger.info(f"🌍 Upstream API: {settings.upstream_base_url}")
    db_ok = test_connection(app.state.store.engine)
    if db_ok:
        try:
            init_db(app.state.store.engine)
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    start_scheduler(app.state.sync_service)
    yield
    stop_scheduler()
    await app.state.sync_service.wait()
    await app.state.upstream_client.close()
    logger.info("AdLens shut down")


def create_app(
    engine: Engine | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the API with its services wired onto app.state.

    `transport` is handed to the upstream httpx client; tests pass an
    httpx.MockTransport to stand in for the upstream API.
    """
    app = FastAPI(
        title="AdLens",
        description="Ad performance analytics — sync campaigns, ads, creatives and daily insights, then report KPIs by campaign or ad.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    cache = TTLCache(ttl_seconds=settings.performance_cache_ttl_seconds)
    store = EntityStore(engine if engine is not None else default_engine)
    tracker = SyncProgressTracker()
    client = UpstreamClient(transport=transport)

    app.state.cache = cache
    app.state.store = store
    app.state.progress_tracker = tracker
    app.state.upstream_client = client
    app.state.sync_service = DataSyncService(
        UpstreamEndpoints(client), store, tracker, on_success=[cache.clear]
    )
    app.state.performance_service = PerformanceService(store, cache)

    # Routers
    app.include_router(performance_router)
    app.include_router(sync_router)
    app.include_router(entity_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "adlens",
            "version": "1.0.0",
            "sync": tracker.status.value,
        }

    return app


app = create_app()
