"""
Time bucketing, won-deal predicates and base aggregation.

Derives ``year`` / ``quarter`` / ``days_to_close`` from the opportunity dates
and groups enriched rows at the two granularities used by the views:

* ``(team_manager, year, quarter)`` for team performance
* ``(team_manager, sales_agent, year, quarter, product)`` for agent performance

Two won-deal rules exist and are intentionally kept apart.  Team-level
metrics count any deal stage that *contains* "won" (case-insensitive), while
agent/product metrics only count a deal stage that *equals* "Won".  Merging
them would change historical team or agent figures.
"""

from __future__ import annotations

import pyspark.sql.functions as F
from pyspark.sql import Column, DataFrame
from pyspark.sql.window import Window


# ---------------------------------------------------------------------------
# Won predicates
# ---------------------------------------------------------------------------
def is_won_liberal(stage_col: str = "deal_stage") -> Column:
    """True when the deal stage contains "won" anywhere, ignoring case.

    Null or unrecognised stages evaluate to False, never null.
    """
    return F.coalesce(F.lower(F.col(stage_col)).contains("won"), F.lit(False))


def is_won_strict(stage_col: str = "deal_stage") -> Column:
    """True only when the deal stage is exactly ``"Won"``."""
    return F.coalesce(F.col(stage_col) == F.lit("Won"), F.lit(False))


def won_flag(predicate: Column) -> Column:
    """Turn a won predicate into a 1/0 integer suitable for summing."""
    return F.when(predicate, F.lit(1)).otherwise(F.lit(0))


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------
def add_time_buckets(df: DataFrame) -> DataFrame:
    """Add ``year``, ``quarter`` and ``days_to_close`` columns.

    Quarters follow calendar boundaries (months 1/4/7/10).  ``days_to_close``
    is null whenever either date is null.
    """
    return (
        df
        .withColumn("year", F.year("engage_date"))
        .withColumn("quarter", F.quarter("engage_date"))
        .withColumn("days_to_close", F.datediff(F.col("close_date"), F.col("engage_date")))
    )


# ---------------------------------------------------------------------------
# Base aggregates
# ---------------------------------------------------------------------------
def aggregate_team_quarters(enriched: DataFrame) -> DataFrame:
    """Group enriched rows by ``(team_manager, year, quarter)``.

    A manager whose agents sit in several regional offices still yields one
    row per quarter; the lexicographically smallest office is reported so the
    windowed deltas never see duplicate sequence positions.
    """
    return (
        enriched
        .groupBy("team_manager", "year", "quarter")
        .agg(
            F.min("regional_office").alias("regional_office"),
            F.sum("close_value").alias("total_revenue"),
            F.count(F.lit(1)).alias("opportunity_count"),
            F.sum(won_flag(is_won_liberal())).alias("won_count"),
        )
    )


def aggregate_agent_product_quarters(enriched: DataFrame) -> DataFrame:
    """Group enriched rows by ``(team_manager, sales_agent, year, quarter, product)``.

    Uses the strict ``"Won"`` rule.  ``days_to_close_sum`` ignores open deals
    (null close dates); ``closed_count`` records how many rows contributed.
    """
    return (
        enriched
        .groupBy("team_manager", "sales_agent", "year", "quarter", "product")
        .agg(
            F.sum("close_value").alias("revenue_per_product"),
            F.count(F.lit(1)).alias("opportunities_per_product"),
            F.sum(won_flag(is_won_strict())).alias("won_deals_per_product"),
            F.sum("days_to_close").alias("days_to_close_sum"),
            F.count("days_to_close").alias("closed_count"),
        )
    )


def quarterly_opportunity_distribution(enriched: DataFrame) -> DataFrame:
    """Quarterly opportunities, revenue and won deals per agent with team totals.

    Agent rows are grouped by ``(year, quarter, team_manager, sales_agent)``;
    ``num_opportunities_per_team`` and ``total_revenue_per_team`` are windowed
    sums over the agent rows sharing ``(year, quarter, team_manager)``.
    """
    team_window = Window.partitionBy("year", "quarter", "team_manager")

    return (
        enriched
        .groupBy("year", "quarter", "team_manager", "sales_agent")
        .agg(
            F.count(F.lit(1)).alias("num_opportunities_agent"),
            F.sum("close_value").alias("revenue"),
            F.sum(won_flag(is_won_liberal())).alias("total_won_deals"),
        )
        .withColumn(
            "num_opportunities_per_team",
            F.sum("num_opportunities_agent").over(team_window),
        )
        .withColumn("total_revenue_per_team", F.sum("revenue").over(team_window))
        .orderBy("year", "quarter", "team_manager", "sales_agent")
    )
