"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Response
from prometheus_fastapi_instrumentator import Instrumentator

from cotrix.api.routes import coupons
from cotrix.config import settings
from cotrix.discovery.browser import BrowserSessionManager
from cotrix.discovery.cache import ResultCache
from cotrix.discovery.orchestrator import DiscoveryOrchestrator
from cotrix.discovery.registry import AdapterRegistry
from cotrix.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_orchestrator() -> DiscoveryOrchestrator:
    """Wire the discovery engine from settings."""
    return DiscoveryOrchestrator(
        session_manager=BrowserSessionManager(),
        adapters=AdapterRegistry.build_enabled(),
        cache=ResultCache(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info(f"Starting Cotrix API (browser mode: {settings.browser_mode})...")
    app.state.orchestrator = build_orchestrator()

    yield

    logger.info("Shutting down...")
    await app.state.orchestrator.cache.clear()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Cotrix API",
    description="Find discount codes for any online store",
    version="0.1.0",
    lifespan=lifespan,
)

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health", "/favicon.ico"],
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

app.include_router(coupons.router)


@app.get("/")
async def root():
    return {"message": 'Cotrix API is live! Use POST /api/coupons with { "url": "https://store.com" }'}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon response to avoid 404 noise."""
    return Response(status_code=204)


if __name__ == "__main__":
    uvicorn.run(
        "cotrix.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
