"""
Sales performance classification router.

Surfaces each agent's revenue decile within its quarter and the derived
performance tier.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from sales_performance.models import SalesPerformanceRow
from sales_performance.services.performance import get_classification
from sales_performance.utils.config import CATEGORY_AVERAGE, CATEGORY_HIGH, CATEGORY_UNDER

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/performance-classification",
    tags=["performance-classification"],
)

_CATEGORIES = (CATEGORY_HIGH, CATEGORY_AVERAGE, CATEGORY_UNDER)


@router.get(
    "/",
    response_model=list[SalesPerformanceRow],
    summary="Agent revenue deciles and performance tiers",
)
async def list_classification(
    year: int | None = Query(None, description="Filter by year"),
    quarter: int | None = Query(None, ge=1, le=4, description="Filter by quarter"),
    category: str | None = Query(None, description="Filter by performance category"),
    limit: int = Query(1000, ge=1, le=10000, description="Max rows returned"),
) -> list[SalesPerformanceRow]:
    """Return ranked agent quarters, highest decile first within each period."""
    if category is not None and category not in _CATEGORIES:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown category '{category}' (expected one of {list(_CATEGORIES)})",
        )
    try:
        return get_classification(year=year, quarter=quarter, category=category, limit=limit)
    except Exception as exc:
        logger.exception("Failed to fetch performance classification")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
