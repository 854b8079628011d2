"""
Sales trends router.

Yearly and quarterly revenue totals, revenue breakdowns by dimension, and
the close-value range agents achieve against product list prices.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from sales_performance.models import PriceRange, QuarterlySales, RevenueShare, YearlySales
from sales_performance.pipeline.trends import DISTRIBUTION_DIMENSIONS
from sales_performance.services.performance import (
    get_price_vs_close_value,
    get_quarterly_sales,
    get_revenue_distribution,
    get_yearly_sales,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sales-trends", tags=["sales-trends"])


# ---------------------------------------------------------------------------
# GET /yearly
# ---------------------------------------------------------------------------
@router.get("/yearly", response_model=list[YearlySales], summary="Total sales per year")
async def yearly() -> list[YearlySales]:
    try:
        return get_yearly_sales()
    except Exception as exc:
        logger.exception("Failed to fetch yearly sales")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /quarterly
# ---------------------------------------------------------------------------
@router.get(
    "/quarterly",
    response_model=list[QuarterlySales],
    summary="Total sales per quarter with quarter-over-quarter change",
)
async def quarterly() -> list[QuarterlySales]:
    try:
        return get_quarterly_sales()
    except Exception as exc:
        logger.exception("Failed to fetch quarterly sales")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /distribution/{dimension}
# ---------------------------------------------------------------------------
@router.get(
    "/distribution/{dimension}",
    response_model=list[RevenueShare],
    summary="Revenue breakdown by product, sector, office, region or account",
)
async def distribution(dimension: str) -> list[RevenueShare]:
    if dimension not in DISTRIBUTION_DIMENSIONS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown dimension '{dimension}'",
        )
    try:
        return get_revenue_distribution(dimension)
    except Exception as exc:
        logger.exception("Failed to fetch revenue distribution for %s", dimension)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /price-vs-close
# ---------------------------------------------------------------------------
@router.get(
    "/price-vs-close",
    response_model=list[PriceRange],
    summary="Close-value range per agent and product vs list price",
)
async def price_vs_close(
    sales_agent: str | None = Query(None, description="Filter by sales agent"),
    limit: int = Query(1000, ge=1, le=10000, description="Max rows returned"),
) -> list[PriceRange]:
    try:
        return get_price_vs_close_value(sales_agent=sales_agent, limit=limit)
    except Exception as exc:
        logger.exception("Failed to fetch price vs close value")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
