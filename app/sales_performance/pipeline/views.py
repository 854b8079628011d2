"""
View assembly.

Composes the join, bucketing, windowed and ranking layers into the three
result sets consumed downstream:

======================================  =====================================
``team_performance``                    quarterly metrics per team manager
``agent_performance``                   quarterly metrics per sales agent
``sales_performance_classification``    decile rank + tier per agent quarter
======================================  =====================================

The enriched opportunity set is built once, cached, and shared read-only by
all three.  Nothing here mutates another result set; callers slice them by
``(year, quarter)`` and read the precomputed deltas for period comparisons.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pyspark.sql.functions as F
from pyspark.sql import DataFrame

from sales_performance.pipeline.enrichment import build_enriched_opportunities
from sales_performance.pipeline.ranking import classify_agents
from sales_performance.pipeline.sources import SalesSources
from sales_performance.pipeline.windowed import agent_performance, team_performance

logger = logging.getLogger(__name__)

# Temp-view names registered by register_temp_views()
TEMP_VIEW_NAMES = {
    "team_performance": "TeamPerformance",
    "agent_performance": "TeamMembersPerformanceAnalysis",
    "sales_performance_classification": "SalesPerformanceView",
}


@dataclass(frozen=True)
class PerformanceViews:
    """The computed result sets of one pipeline run."""

    enriched: DataFrame
    team_performance: DataFrame
    agent_performance: DataFrame
    sales_performance_classification: DataFrame

    def get(self, name: str) -> DataFrame:
        """Return a result set by its name in ``TEMP_VIEW_NAMES``."""
        if name not in TEMP_VIEW_NAMES:
            raise KeyError(f"Unknown view '{name}'")
        return getattr(self, name)

    def release(self) -> None:
        """Drop the cached enriched set."""
        self.enriched.unpersist()


def build_views(sources: SalesSources, *, cache: bool = True) -> PerformanceViews:
    """Run the full pipeline over *sources*.

    Parameters
    ----------
    sources:
        The four cleansed input tables.
    cache:
        Cache the enriched set so the three views do not recompute the joins.

    Returns
    -------
    PerformanceViews
        Lazily evaluated DataFrames for every result set.
    """
    enriched = build_enriched_opportunities(sources)
    if cache:
        enriched = enriched.cache()

    agents = agent_performance(enriched)
    views = PerformanceViews(
        enriched=enriched,
        team_performance=team_performance(enriched),
        agent_performance=agents,
        sales_performance_classification=classify_agents(agents),
    )
    logger.info("Assembled performance views (cache=%s)", cache)
    return views


def register_temp_views(views: PerformanceViews) -> dict[str, str]:
    """Expose the result sets as session temp views; returns name -> view name."""
    for attr, view_name in TEMP_VIEW_NAMES.items():
        views.get(attr).createOrReplaceTempView(view_name)
        logger.debug("Registered temp view %s", view_name)
    return dict(TEMP_VIEW_NAMES)


# ---------------------------------------------------------------------------
# Period slicing
# ---------------------------------------------------------------------------
def period_slice(df: DataFrame, year: int | None = None, quarter: int | None = None) -> DataFrame:
    """Filter *df* to an explicit year and/or quarter."""
    if year is not None:
        df = df.filter(F.col("year") == year)
    if quarter is not None:
        df = df.filter(F.col("quarter") == quarter)
    return df


def latest_period(df: DataFrame) -> tuple[int, int] | None:
    """Return the most recent ``(year, quarter)`` present in *df*."""
    row = (
        df.select("year", "quarter")
        .filter(F.col("year").isNotNull())
        .orderBy(F.col("year").desc(), F.col("quarter").desc())
        .first()
    )
    if row is None:
        return None
    return int(row["year"]), int(row["quarter"])


def team_period_comparison(views: PerformanceViews, year: int, quarter: int) -> DataFrame:
    """Each team's revenue in the period against the previous period, highest first."""
    return (
        period_slice(views.team_performance, year, quarter)
        .select(
            "team_manager",
            "total_revenue",
            "previous_period_revenue",
            "revenue_delta",
            "revenue_delta_pct",
        )
        .orderBy(F.col("total_revenue").desc_nulls_last(), F.col("team_manager"))
    )


def top_team(views: PerformanceViews, year: int, quarter: int):
    """Return the team row with the highest revenue in the period, or None."""
    return (
        period_slice(views.team_performance, year, quarter)
        .orderBy(F.col("total_revenue").desc_nulls_last(), F.col("team_manager"))
        .first()
    )


# ---------------------------------------------------------------------------
# Agent summaries
# ---------------------------------------------------------------------------
def agent_revenue_totals(views: PerformanceViews) -> DataFrame:
    """All-time revenue per agent, highest first."""
    return (
        views.agent_performance
        .groupBy("sales_agent")
        .agg(F.sum("quarterly_revenue").alias("total_revenue"))
        .orderBy(F.col("total_revenue").desc_nulls_last(), F.col("sales_agent"))
    )


def agent_performance_factors(views: PerformanceViews) -> DataFrame:
    """Average cycle length, win rate and deal size per agent over its quarters."""
    return (
        views.agent_performance
        .groupBy("sales_agent")
        .agg(
            F.round(F.avg("sales_cycle_length"), 2).alias("avg_sales_cycle_length"),
            F.round(F.avg("win_rate"), 2).alias("avg_win_rate"),
            F.round(F.avg("avg_deal_size"), 2).alias("avg_deal_size"),
        )
        .orderBy("sales_agent")
    )


def quarterly_revenue_distribution(views: PerformanceViews) -> DataFrame:
    """Spread of agent quarterly revenue per quarter."""
    return (
        views.agent_performance
        .groupBy("year", "quarter")
        .agg(
            F.round(F.avg("quarterly_revenue"), 2).alias("avg_quarterly_revenue"),
            F.min("quarterly_revenue").alias("min_quarterly_revenue"),
            F.max("quarterly_revenue").alias("max_quarterly_revenue"),
        )
        .orderBy("year", "quarter")
    )


def won_deals_distribution(views: PerformanceViews) -> DataFrame:
    """Spread of agent won deals per quarter."""
    return (
        views.agent_performance
        .groupBy("year", "quarter")
        .agg(
            F.round(F.avg("num_won_deals"), 2).alias("avg_num_won_deals"),
            F.min("num_won_deals").alias("min_num_won_deals"),
            F.max("num_won_deals").alias("max_num_won_deals"),
        )
        .orderBy("year", "quarter")
    )
