"""
Windowed metrics engine.

Turns the base aggregates from :mod:`sales_performance.pipeline.bucketing`
into the team and agent period metrics:

* ratios (win rate, average deal size, sales cycle length) with null-safe
  division
* period-over-period revenue deltas partitioned by team manager or sales
  agent and ordered by ``(year, quarter)``
* the two-level agent rollup: per-product groups summed into
  ``(sales_agent, year, quarter)`` totals with a window over the grouped rows

Every division goes through :func:`safe_divide`, so a zero or null
denominator yields a null metric instead of an error, including when
``spark.sql.ansi.enabled`` is on.
"""

from __future__ import annotations

import pyspark.sql.functions as F
from pyspark.sql import Column, DataFrame
from pyspark.sql.types import DoubleType, IntegerType
from pyspark.sql.window import Window

from sales_performance.pipeline.bucketing import (
    aggregate_agent_product_quarters,
    aggregate_team_quarters,
)

PERIOD_ORDER = ("year", "quarter")

TEAM_PERFORMANCE_COLUMNS = [
    "regional_office",
    "team_manager",
    "year",
    "quarter",
    "total_revenue",
    "previous_period_revenue",
    "revenue_delta",
    "opportunity_count",
    "won_count",
    "win_rate",
    "avg_deal_size",
    "revenue_delta_pct",
]

AGENT_PERFORMANCE_COLUMNS = [
    "team_manager",
    "sales_agent",
    "year",
    "quarter",
    "quarterly_revenue",
    "num_won_deals",
    "num_opportunities_per_agent",
    "sales_cycle_length",
    "win_rate",
    "avg_deal_size",
    "previous_period_revenue",
    "revenue_delta",
    "revenue_delta_pct",
]


# ---------------------------------------------------------------------------
# Null-safe arithmetic
# ---------------------------------------------------------------------------
def _as_col(c: Column | str) -> Column:
    return F.col(c) if isinstance(c, str) else c


def safe_divide(numerator: Column | str, denominator: Column | str) -> Column:
    """``numerator / denominator`` as a double, null when the denominator is null or zero."""
    num = _as_col(numerator)
    den = _as_col(denominator)
    return F.when(
        den.isNotNull() & (den != 0),
        num.cast(DoubleType()) / den.cast(DoubleType()),
    ).otherwise(F.lit(None).cast(DoubleType()))


def percentage(numerator: Column | str, denominator: Column | str) -> Column:
    """``numerator / denominator * 100`` rounded to 2 decimals, null-safe."""
    return F.round(safe_divide(numerator, denominator) * 100, 2)


def ratio(numerator: Column | str, denominator: Column | str) -> Column:
    """``numerator / denominator`` rounded to 2 decimals, null-safe."""
    return F.round(safe_divide(numerator, denominator), 2)


# ---------------------------------------------------------------------------
# Period-over-period deltas
# ---------------------------------------------------------------------------
def add_period_over_period(
    df: DataFrame,
    partition_col: str,
    revenue_col: str,
) -> DataFrame:
    """Add previous-period revenue, absolute and percentage deltas.

    *df* must hold at most one row per ``(partition_col, year, quarter)``;
    the first period of every partition gets null previous/delta fields.
    """
    period_window = Window.partitionBy(partition_col).orderBy(*PERIOD_ORDER)

    return (
        df
        .withColumn("previous_period_revenue", F.lag(revenue_col).over(period_window))
        .withColumn("revenue_delta", F.col(revenue_col) - F.col("previous_period_revenue"))
        .withColumn("revenue_delta_pct", percentage("revenue_delta", "previous_period_revenue"))
    )


# ---------------------------------------------------------------------------
# Team performance
# ---------------------------------------------------------------------------
def team_performance(enriched: DataFrame) -> DataFrame:
    """Quarterly revenue, growth, win rate and deal size per team manager.

    Parameters
    ----------
    enriched:
        Output of :func:`build_enriched_opportunities`.

    Returns
    -------
    pyspark.sql.DataFrame
        One row per ``(team_manager, year, quarter)`` with the columns in
        ``TEAM_PERFORMANCE_COLUMNS``.
    """
    base = aggregate_team_quarters(enriched)

    metrics = (
        base
        .withColumn("win_rate", percentage("won_count", "opportunity_count"))
        .withColumn("avg_deal_size", ratio("total_revenue", "won_count"))
    )
    metrics = add_period_over_period(metrics, "team_manager", "total_revenue")
    return metrics.select(*TEAM_PERFORMANCE_COLUMNS)


# ---------------------------------------------------------------------------
# Agent performance
# ---------------------------------------------------------------------------
def agent_product_performance(enriched: DataFrame) -> DataFrame:
    """Per-product agent groups with the agent's quarter totals attached.

    The quarter totals are windowed sums over the already-grouped product
    rows sharing ``(sales_agent, year, quarter)``.
    """
    agent_quarter = Window.partitionBy("sales_agent", *PERIOD_ORDER)

    return (
        aggregate_agent_product_quarters(enriched)
        .withColumn("quarterly_revenue", F.sum("revenue_per_product").over(agent_quarter))
        .withColumn(
            "num_opportunities_per_agent",
            F.sum("opportunities_per_product").over(agent_quarter),
        )
        .withColumn("num_won_deals", F.sum("won_deals_per_product").over(agent_quarter))
        .withColumn("total_days_to_close", F.sum("days_to_close_sum").over(agent_quarter))
    )


def agent_performance(enriched: DataFrame) -> DataFrame:
    """Quarterly performance per sales agent.

    ``sales_cycle_length`` is the summed days-to-close of the agent's
    quarter divided by its won deals, truncated toward zero.  It is null when
    the agent won nothing that quarter or none of its deals has closed.

    Returns
    -------
    pyspark.sql.DataFrame
        One row per ``(sales_agent, year, quarter)`` with the columns in
        ``AGENT_PERFORMANCE_COLUMNS``.
    """
    per_product = agent_product_performance(enriched)

    agent_quarters = per_product.select(
        "team_manager",
        "sales_agent",
        "year",
        "quarter",
        "quarterly_revenue",
        "num_won_deals",
        "num_opportunities_per_agent",
        "total_days_to_close",
    ).distinct()

    metrics = (
        agent_quarters
        .withColumn(
            "sales_cycle_length",
            safe_divide("total_days_to_close", "num_won_deals").cast(IntegerType()),
        )
        .withColumn("win_rate", percentage("num_won_deals", "num_opportunities_per_agent"))
        .withColumn("avg_deal_size", ratio("quarterly_revenue", "num_won_deals"))
    )
    metrics = add_period_over_period(metrics, "sales_agent", "quarterly_revenue")
    return metrics.select(*AGENT_PERFORMANCE_COLUMNS)
