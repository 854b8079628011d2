"""
Agent performance router.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from sales_performance.models import (
    AgentPerformanceRow,
    AgentQuarterDistribution,
    AgentSummary,
)
from sales_performance.services.performance import (
    get_agent_distribution,
    get_agent_performance,
    get_agent_summaries,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/agent-performance", tags=["agent-performance"])


@router.get(
    "/",
    response_model=list[AgentPerformanceRow],
    summary="Quarterly sales agent performance",
)
async def list_agent_performance(
    year: int | None = Query(None, description="Filter by year"),
    quarter: int | None = Query(None, ge=1, le=4, description="Filter by quarter"),
    team_manager: str | None = Query(None, description="Filter by team manager"),
    sales_agent: str | None = Query(None, description="Filter by sales agent"),
    limit: int = Query(1000, ge=1, le=10000, description="Max rows returned"),
) -> list[AgentPerformanceRow]:
    try:
        return get_agent_performance(
            year=year,
            quarter=quarter,
            team_manager=team_manager,
            sales_agent=sales_agent,
            limit=limit,
        )
    except Exception as exc:
        logger.exception("Failed to fetch agent performance")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get(
    "/summary",
    response_model=list[AgentSummary],
    summary="All-time revenue and average factors per agent",
)
async def agent_summary() -> list[AgentSummary]:
    """Return each agent's total revenue with its average sales cycle
    length, win rate and deal size across quarters.
    """
    try:
        return get_agent_summaries()
    except Exception as exc:
        logger.exception("Failed to fetch agent summaries")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get(
    "/distribution",
    response_model=list[AgentQuarterDistribution],
    summary="Per-quarter spread of agent revenue and won deals",
)
async def agent_distribution() -> list[AgentQuarterDistribution]:
    try:
        return get_agent_distribution()
    except Exception as exc:
        logger.exception("Failed to fetch agent distribution")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
