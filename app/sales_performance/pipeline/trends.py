"""
Sales trends and revenue distributions over the enriched opportunity set.
"""

from __future__ import annotations

import pyspark.sql.functions as F
from pyspark.sql import DataFrame
from pyspark.sql.window import Window

from sales_performance.pipeline.windowed import percentage
from sales_performance.utils.config import ACCOUNT_PLACEHOLDER

# Dimensions a revenue distribution can be broken down by
DISTRIBUTION_DIMENSIONS = (
    "product",
    "sector",
    "office_location",
    "regional_office",
    "account",
)

# Account attributes; unmatched accounts carry no sector or location
NULL_EXCLUDED_DIMENSIONS = ("sector", "office_location")


def yearly_sales(enriched: DataFrame) -> DataFrame:
    """Total close value per year."""
    return (
        enriched
        .groupBy("year")
        .agg(F.sum("close_value").alias("total_sales"))
        .orderBy("year")
    )


def quarterly_sales(enriched: DataFrame) -> DataFrame:
    """Total close value per quarter with the change against the previous quarter.

    ``percentage_change`` is null for the first quarter and whenever the
    previous quarter's total is zero.
    """
    # Single global sequence of quarters; the grouped frame is tiny
    period_window = Window.orderBy("year", "quarter")

    return (
        enriched
        .groupBy("year", "quarter")
        .agg(F.sum("close_value").alias("total_sales"))
        .withColumn("_previous", F.lag("total_sales").over(period_window))
        .withColumn(
            "percentage_change",
            percentage(F.col("total_sales") - F.col("_previous"), "_previous"),
        )
        .drop("_previous")
        .orderBy("year", "quarter")
    )


def revenue_distribution(enriched: DataFrame, dimension: str) -> DataFrame:
    """Total revenue per value of *dimension*, highest first.

    Null ``sector`` and ``office_location`` values are left out.  For the
    other dimensions a null value (e.g. an agent missing from the team
    table) is kept as its own group.  Opportunities carrying the account
    placeholder are dropped when breaking down by account.
    """
    if dimension not in DISTRIBUTION_DIMENSIONS:
        raise ValueError(
            f"Unknown dimension '{dimension}' (expected one of {', '.join(DISTRIBUTION_DIMENSIONS)})"
        )

    rows = enriched
    if dimension in NULL_EXCLUDED_DIMENSIONS:
        rows = rows.filter(F.col(dimension).isNotNull())
    if dimension == "account":
        rows = rows.filter(F.col("account") != F.lit(ACCOUNT_PLACEHOLDER))

    return (
        rows
        .groupBy(dimension)
        .agg(F.sum("close_value").alias("total_revenue"))
        .orderBy(F.col("total_revenue").desc_nulls_last(), F.col(dimension))
    )


def price_vs_close_value(enriched: DataFrame) -> DataFrame:
    """Close-value range each agent achieved per product against its list price.

    Only deals with a non-zero close value are considered.
    """
    return (
        enriched
        .filter(F.col("close_value").isNotNull() & (F.col("close_value") != 0))
        .groupBy("team_manager", "sales_agent", "product", "sales_price")
        .agg(
            F.min("close_value").alias("min_close_value"),
            F.max("close_value").alias("max_close_value"),
            F.round(F.avg("close_value"), 2).alias("avg_close_value"),
        )
        .orderBy("team_manager", "sales_agent", "product")
    )
