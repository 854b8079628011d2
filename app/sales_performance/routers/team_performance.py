"""
Team performance router.

Quarterly revenue, growth, win rate and deal size per team manager, with
a shortcut for the top team of a period and a period-over-period comparison.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from sales_performance.models import TeamComparisonRow, TeamPerformanceRow
from sales_performance.services.performance import (
    get_team_comparison,
    get_team_performance,
    get_top_team,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/team-performance", tags=["team-performance"])


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------
@router.get(
    "/",
    response_model=list[TeamPerformanceRow],
    summary="Quarterly team performance",
)
async def list_team_performance(
    year: int | None = Query(None, description="Filter by year"),
    quarter: int | None = Query(None, ge=1, le=4, description="Filter by quarter"),
    team_manager: str | None = Query(None, description="Filter by team manager"),
    limit: int = Query(1000, ge=1, le=10000, description="Max rows returned"),
) -> list[TeamPerformanceRow]:
    """Return team metrics ordered by period and manager."""
    try:
        return get_team_performance(
            year=year, quarter=quarter, team_manager=team_manager, limit=limit
        )
    except Exception as exc:
        logger.exception("Failed to fetch team performance")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /top
# ---------------------------------------------------------------------------
@router.get(
    "/top",
    response_model=TeamPerformanceRow,
    summary="Highest-revenue team of a period",
)
async def top_team_performance(
    year: int | None = Query(None, description="Year (defaults to the latest period)"),
    quarter: int | None = Query(None, ge=1, le=4, description="Quarter"),
) -> TeamPerformanceRow:
    """Return the team with the highest revenue, comparing against its
    previous quarter through the precomputed delta fields.
    """
    try:
        row = get_top_team(year=year, quarter=quarter)
        if row is None:
            raise HTTPException(
                status_code=404,
                detail=f"No team performance data for {year} Q{quarter}",
            )
        return row
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to fetch top team for %s Q%s", year, quarter)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /comparison
# ---------------------------------------------------------------------------
@router.get(
    "/comparison",
    response_model=list[TeamComparisonRow],
    summary="Team revenue against the previous quarter",
)
async def team_comparison(
    year: int | None = Query(None, description="Year (defaults to the latest period)"),
    quarter: int | None = Query(None, ge=1, le=4, description="Quarter"),
) -> list[TeamComparisonRow]:
    """Return every team of the period, highest revenue first, with its
    previous-quarter revenue and change.
    """
    try:
        return get_team_comparison(year=year, quarter=quarter)
    except Exception as exc:
        logger.exception("Failed to compare teams for %s Q%s", year, quarter)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
