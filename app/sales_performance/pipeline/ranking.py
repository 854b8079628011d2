"""
Decile ranking and performance classification.

Bucketing follows NTILE semantics: a partition of ``n`` ordered rows is split
into ``buckets`` groups of ``n // buckets`` rows and the ``n % buckets``
leftover rows go one each to the lowest-numbered groups.  The arithmetic lives
in :func:`ntile_bucket` (plain Python) and :func:`ntile_column` (the same
formula as a Spark expression) so the result never depends on an engine's
built-in ranking function.
"""

from __future__ import annotations

import pyspark.sql.functions as F
from pyspark.sql import Column, DataFrame
from pyspark.sql.types import IntegerType
from pyspark.sql.window import Window

from sales_performance.utils.config import (
    CATEGORY_AVERAGE,
    CATEGORY_HIGH,
    CATEGORY_UNDER,
    DECILE_BUCKETS,
    HIGH_PERFORMER_MIN_BUCKET,
    UNDERPERFORMER_MAX_BUCKET,
)

CLASSIFICATION_COLUMNS = [
    "team_manager",
    "sales_agent",
    "year",
    "quarter",
    "total_revenue",
    "revenue_percentile",
    "performance_category",
]


# ---------------------------------------------------------------------------
# Pure bucketing / classification
# ---------------------------------------------------------------------------
def ntile_bucket(rank: int, size: int, buckets: int = DECILE_BUCKETS) -> int:
    """Return the 1-based bucket of the row at 1-based *rank* among *size* rows.

    >>> [ntile_bucket(r, 12) for r in range(1, 13)]
    [1, 1, 2, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    """
    if buckets < 1:
        raise ValueError("buckets must be >= 1")
    if not 1 <= rank <= size:
        raise ValueError(f"rank {rank} outside partition of size {size}")

    base, remainder = divmod(size, buckets)
    large_rows = remainder * (base + 1)
    if rank <= large_rows:
        return (rank - 1) // (base + 1) + 1
    return remainder + (rank - 1 - large_rows) // base + 1


def classify_bucket(bucket: int) -> str:
    """Map a decile bucket to its performance category."""
    if bucket >= HIGH_PERFORMER_MIN_BUCKET:
        return CATEGORY_HIGH
    if bucket <= UNDERPERFORMER_MAX_BUCKET:
        return CATEGORY_UNDER
    return CATEGORY_AVERAGE


# ---------------------------------------------------------------------------
# Spark expressions
# ---------------------------------------------------------------------------
def ntile_column(rank_col: str, size_col: str, buckets: int = DECILE_BUCKETS) -> Column:
    """Spark expression equivalent of :func:`ntile_bucket`."""
    rank = F.col(rank_col)
    size = F.col(size_col)
    base = F.floor(size / F.lit(buckets))
    remainder = size - base * F.lit(buckets)
    large_rows = remainder * (base + 1)

    return (
        F.when(rank <= large_rows, F.floor((rank - 1) / (base + 1)) + 1)
        .when(base > 0, remainder + F.floor((rank - 1 - large_rows) / base) + 1)
        .cast(IntegerType())
    )


def category_column(bucket_col: str) -> Column:
    """Spark expression equivalent of :func:`classify_bucket`."""
    bucket = F.col(bucket_col)
    return (
        F.when(bucket >= HIGH_PERFORMER_MIN_BUCKET, F.lit(CATEGORY_HIGH))
        .when(bucket <= UNDERPERFORMER_MAX_BUCKET, F.lit(CATEGORY_UNDER))
        .otherwise(F.lit(CATEGORY_AVERAGE))
    )


def assign_buckets(
    df: DataFrame,
    partition_cols: list[str],
    order_col: str,
    tie_breakers: list[str],
    output_col: str,
    buckets: int = DECILE_BUCKETS,
) -> DataFrame:
    """Rank rows by *order_col* ascending within each partition and bucket them.

    *tie_breakers* make the row order total, so equal values always land in
    the same buckets on every run.
    """
    order_window = Window.partitionBy(*partition_cols).orderBy(
        F.col(order_col).asc_nulls_first(),
        *[F.col(c).asc_nulls_first() for c in tie_breakers],
    )
    size_window = Window.partitionBy(*partition_cols)

    return (
        df
        .withColumn("_rank", F.row_number().over(order_window))
        .withColumn("_size", F.count(F.lit(1)).over(size_window))
        .withColumn(output_col, ntile_column("_rank", "_size", buckets))
        .drop("_rank", "_size")
    )


# ---------------------------------------------------------------------------
# Sales performance classification
# ---------------------------------------------------------------------------
def classify_agents(agent_metrics: DataFrame) -> DataFrame:
    """Decile-rank agents by quarterly revenue and label their performance tier.

    Parameters
    ----------
    agent_metrics:
        Output of :func:`agent_performance`.

    Returns
    -------
    pyspark.sql.DataFrame
        One row per ``(team_manager, sales_agent, year, quarter)`` with
        ``revenue_percentile`` (1-10) and ``performance_category``.
    """
    totals = (
        agent_metrics
        .groupBy("team_manager", "sales_agent", "year", "quarter")
        .agg(F.sum("quarterly_revenue").alias("total_revenue"))
    )

    ranked = assign_buckets(
        totals,
        partition_cols=["year", "quarter"],
        order_col="total_revenue",
        tie_breakers=["team_manager", "sales_agent"],
        output_col="revenue_percentile",
    )
    return (
        ranked
        .withColumn("performance_category", category_column("revenue_percentile"))
        .select(*CLASSIFICATION_COLUMNS)
    )
