"""
Performance view service.

Runs the pipeline against the configured source tables, keeps the resulting
views in the TTL cache of :mod:`sales_performance.utils.spark_client`, and
converts sliced result sets into the pydantic row models used by the API.
"""

from __future__ import annotations

import logging
from typing import Any

import pyspark.sql.functions as F
from pyspark.sql import DataFrame

from sales_performance.models import (
    AgentPerformanceRow,
    AgentQuarterDistribution,
    AgentSummary,
    OpportunityDistributionRow,
    PriceRange,
    QuarterlySales,
    RevenueShare,
    SalesPerformanceRow,
    TeamComparisonRow,
    TeamPerformanceRow,
    YearlySales,
)
from sales_performance.pipeline import trends
from sales_performance.pipeline.bucketing import quarterly_opportunity_distribution
from sales_performance.pipeline.sources import load_sources
from sales_performance.pipeline.views import (
    PerformanceViews,
    agent_performance_factors,
    agent_revenue_totals,
    build_views,
    latest_period,
    period_slice,
    quarterly_revenue_distribution,
    team_period_comparison,
    top_team,
    won_deals_distribution,
)
from sales_performance.utils.spark_client import (
    cache_get,
    cache_set,
    get_spark_session,
    invalidate_cache,
)

logger = logging.getLogger(__name__)

_VIEWS_KEY = "views:performance"


def _rows(df: DataFrame) -> list[dict[str, Any]]:
    return [r.asDict() for r in df.collect()]


# ---------------------------------------------------------------------------
# View lifecycle
# ---------------------------------------------------------------------------
def get_views() -> PerformanceViews:
    """Return the cached views, computing them on first use or after expiry."""
    cached = cache_get(_VIEWS_KEY)
    if cached is not None:
        logger.debug("Cache hit for %s", _VIEWS_KEY)
        return cached

    # Expired views still hold a cached enriched set
    refresh_views()
    logger.info("Computing performance views")
    views = build_views(load_sources(get_spark_session()))
    cache_set(_VIEWS_KEY, views)
    return views


def refresh_views() -> int:
    """Drop cached views so the next request recomputes from the sources."""
    evicted = invalidate_cache("views:")
    for views in evicted:
        views.release()
    return len(evicted)


# ---------------------------------------------------------------------------
# Team performance
# ---------------------------------------------------------------------------
def get_team_performance(
    year: int | None = None,
    quarter: int | None = None,
    team_manager: str | None = None,
    limit: int = 1000,
) -> list[TeamPerformanceRow]:
    """Return team metrics, optionally filtered to a period or manager."""
    df = period_slice(get_views().team_performance, year, quarter)
    if team_manager:
        df = df.filter(F.col("team_manager") == team_manager)
    df = df.orderBy("year", "quarter", "team_manager").limit(limit)
    return [TeamPerformanceRow(**r) for r in _rows(df)]


def get_top_team(year: int | None = None, quarter: int | None = None) -> TeamPerformanceRow | None:
    """Highest-revenue team of the period; defaults to the latest period."""
    views = get_views()
    if year is None or quarter is None:
        period = latest_period(views.team_performance)
        if period is None:
            return None
        year, quarter = period

    row = top_team(views, year, quarter)
    return TeamPerformanceRow(**row.asDict()) if row is not None else None


def get_team_comparison(year: int | None = None, quarter: int | None = None) -> list[TeamComparisonRow]:
    """Teams of one period against their previous period; defaults to the latest period."""
    views = get_views()
    if year is None or quarter is None:
        period = latest_period(views.team_performance)
        if period is None:
            return []
        year, quarter = period

    return [TeamComparisonRow(**r) for r in _rows(team_period_comparison(views, year, quarter))]


def get_opportunity_distribution(
    year: int | None = None,
    quarter: int | None = None,
    team_manager: str | None = None,
    limit: int = 1000,
) -> list[OpportunityDistributionRow]:
    """Quarterly opportunities per agent with the team totals alongside."""
    df = period_slice(quarterly_opportunity_distribution(get_views().enriched), year, quarter)
    if team_manager:
        df = df.filter(F.col("team_manager") == team_manager)
    df = df.orderBy("year", "quarter", "team_manager", "sales_agent").limit(limit)
    return [OpportunityDistributionRow(**r) for r in _rows(df)]


# ---------------------------------------------------------------------------
# Agent performance
# ---------------------------------------------------------------------------
def get_agent_performance(
    year: int | None = None,
    quarter: int | None = None,
    team_manager: str | None = None,
    sales_agent: str | None = None,
    limit: int = 1000,
) -> list[AgentPerformanceRow]:
    """Return agent metrics, optionally filtered to a period, team or agent."""
    df = period_slice(get_views().agent_performance, year, quarter)
    if team_manager:
        df = df.filter(F.col("team_manager") == team_manager)
    if sales_agent:
        df = df.filter(F.col("sales_agent") == sales_agent)
    df = df.orderBy("year", "quarter", "team_manager", "sales_agent").limit(limit)
    return [AgentPerformanceRow(**r) for r in _rows(df)]


def get_agent_summaries() -> list[AgentSummary]:
    """All-time revenue and average factors per agent, highest revenue first."""
    views = get_views()
    summary = (
        agent_revenue_totals(views)
        .join(agent_performance_factors(views), on="sales_agent", how="left")
        .orderBy(F.col("total_revenue").desc_nulls_last(), F.col("sales_agent"))
    )
    return [AgentSummary(**r) for r in _rows(summary)]


def get_agent_distribution() -> list[AgentQuarterDistribution]:
    """Per-quarter spread of agent revenue and won deals."""
    views = get_views()
    df = (
        quarterly_revenue_distribution(views)
        .join(won_deals_distribution(views), on=["year", "quarter"], how="inner")
        .orderBy("year", "quarter")
    )
    return [AgentQuarterDistribution(**r) for r in _rows(df)]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def get_classification(
    year: int | None = None,
    quarter: int | None = None,
    category: str | None = None,
    limit: int = 1000,
) -> list[SalesPerformanceRow]:
    """Return agent tiers, optionally filtered to a period or category."""
    df = period_slice(get_views().sales_performance_classification, year, quarter)
    if category:
        df = df.filter(F.col("performance_category") == category)
    df = df.orderBy(
        "year", "quarter", F.col("revenue_percentile").desc(), F.col("total_revenue").desc_nulls_last(),
        "sales_agent",
    ).limit(limit)
    return [SalesPerformanceRow(**r) for r in _rows(df)]


# ---------------------------------------------------------------------------
# Sales trends
# ---------------------------------------------------------------------------
def get_yearly_sales() -> list[YearlySales]:
    return [YearlySales(**r) for r in _rows(trends.yearly_sales(get_views().enriched))]


def get_quarterly_sales() -> list[QuarterlySales]:
    return [QuarterlySales(**r) for r in _rows(trends.quarterly_sales(get_views().enriched))]


def get_revenue_distribution(dimension: str) -> list[RevenueShare]:
    """Revenue per value of *dimension*; raises ``ValueError`` for unknown dimensions."""
    df = trends.revenue_distribution(get_views().enriched, dimension)
    return [
        RevenueShare(dimension=dimension, value=r[dimension], total_revenue=r["total_revenue"])
        for r in _rows(df)
    ]


def get_price_vs_close_value(
    sales_agent: str | None = None,
    limit: int = 1000,
) -> list[PriceRange]:
    df = trends.price_vs_close_value(get_views().enriched)
    if sales_agent:
        df = df.filter(F.col("sales_agent") == sales_agent)
    return [PriceRange(**r) for r in _rows(df.limit(limit))]
