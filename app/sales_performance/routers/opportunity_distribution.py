"""
Opportunity distribution router.

Quarterly opportunities, revenue and won deals per agent, each row carrying
its team's totals for the same quarter.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from sales_performance.models import OpportunityDistributionRow
from sales_performance.services.performance import get_opportunity_distribution

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/opportunity-distribution", tags=["opportunity-distribution"])


@router.get(
    "/",
    response_model=list[OpportunityDistributionRow],
    summary="Quarterly opportunities per agent with team totals",
)
async def list_opportunity_distribution(
    year: int | None = Query(None, description="Filter by year"),
    quarter: int | None = Query(None, ge=1, le=4, description="Filter by quarter"),
    team_manager: str | None = Query(None, description="Filter by team manager"),
    limit: int = Query(1000, ge=1, le=10000, description="Max rows returned"),
) -> list[OpportunityDistributionRow]:
    try:
        return get_opportunity_distribution(
            year=year, quarter=quarter, team_manager=team_manager, limit=limit
        )
    except Exception as exc:
        logger.exception("Failed to fetch opportunity distribution")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
