"""
Sales Performance Analytics -- FastAPI application.

Read-only REST surface over the computed performance views: quarterly team
performance, sales agent performance, agent performance-tier
classification, and sales trends.  Views are computed on first request from
the configured source tables and cached until ``CACHE_TTL`` expires or
``POST /api/v1/refresh`` is called.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from sales_performance.models import RefreshResponse
from sales_performance.routers import (
    agent_performance,
    classification,
    opportunity_distribution,
    sales_trends,
    team_performance,
)
from sales_performance.services.performance import refresh_views
from sales_performance.utils.config import APP_TITLE, APP_VERSION, LOG_LEVEL

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown hooks."""
    logger.info("Starting %s v%s", APP_TITLE, APP_VERSION)
    yield
    refresh_views()
    logger.info("Shutting down %s", APP_TITLE)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(team_performance.router)
app.include_router(agent_performance.router)
app.include_router(classification.router)
app.include_router(opportunity_distribution.router)
app.include_router(sales_trends.router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return a simple health-check response."""
    return {"status": "healthy", "version": APP_VERSION}


# ---------------------------------------------------------------------------
# Cache refresh
# ---------------------------------------------------------------------------
@app.post(
    "/api/v1/refresh",
    response_model=RefreshResponse,
    tags=["maintenance"],
    summary="Invalidate cached performance views",
)
async def api_refresh() -> RefreshResponse:
    """Drop the cached views; the next read recomputes them from the sources."""
    try:
        evicted = refresh_views()
        return RefreshResponse(status="invalidated", evicted=evicted)
    except Exception as exc:
        logger.exception("Failed to refresh performance views")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
