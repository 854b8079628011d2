"""
Record join layer.

Builds the enriched opportunity set: every opportunity with an engagement
date, left-joined to its agent (team manager, regional office), account
(office location, sector) and product (reference sales price), plus the time
buckets.  The result is computed once per run and shared read-only by every
downstream aggregation.
"""

from __future__ import annotations

import logging

import pyspark.sql.functions as F
from pyspark.sql import DataFrame
from pyspark.sql.window import Window

from sales_performance.pipeline.bucketing import add_time_buckets
from sales_performance.pipeline.sources import SalesSources

logger = logging.getLogger(__name__)

ENRICHED_COLUMNS = [
    "opportunity_id",
    "regional_office",
    "team_manager",
    "team_label",
    "sales_agent",
    "product",
    "account",
    "office_location",
    "sector",
    "deal_stage",
    "engage_date",
    "year",
    "quarter",
    "close_date",
    "days_to_close",
    "sales_price",
    "close_value",
]


def _one_row_per_key(dim: DataFrame, key: str) -> DataFrame:
    """Keep a single row per dimension key so a left join cannot fan out.

    Duplicates are resolved deterministically by the remaining columns.
    """
    others = [c for c in dim.columns if c != key]
    dedup_window = Window.partitionBy(key).orderBy(*[F.col(c).asc_nulls_last() for c in others])
    return (
        dim
        .filter(F.col(key).isNotNull())
        .withColumn("_row_num", F.row_number().over(dedup_window))
        .filter(F.col("_row_num") == 1)
        .drop("_row_num")
    )


def team_label(manager_col: str = "team_manager"):
    """``"Team <first word of manager>"``; null when the manager is unknown."""
    return F.concat(F.lit("Team "), F.substring_index(F.col(manager_col), " ", 1))


def build_enriched_opportunities(sources: SalesSources) -> DataFrame:
    """Join opportunities with the three dimensions and derive time buckets.

    Processing steps
    ----------------
    1. Drop opportunities without an ``engage_date``; they cannot be placed
       in any year/quarter bucket.
    2. Left join the agent, account and product dimensions.  Unmatched keys
       leave the dimension columns null and keep the opportunity.
    3. Derive ``year``, ``quarter``, ``days_to_close`` and ``team_label``.

    Returns
    -------
    pyspark.sql.DataFrame
        One row per dated opportunity with the columns in ``ENRICHED_COLUMNS``.
    """
    opportunities = sources.opportunities
    if "opportunity_id" not in opportunities.columns:
        opportunities = opportunities.withColumn("opportunity_id", F.lit(None).cast("string"))

    dated = opportunities.filter(F.col("engage_date").isNotNull())

    agents = _one_row_per_key(
        sources.agents.select(
            "sales_agent",
            F.col("manager").alias("team_manager"),
            "regional_office",
        ),
        "sales_agent",
    )
    accounts = _one_row_per_key(
        sources.accounts.select("account", "office_location", "sector"),
        "account",
    )
    products = _one_row_per_key(
        sources.products.select("product", "sales_price"),
        "product",
    )

    enriched = (
        dated
        .join(agents, on="sales_agent", how="left")
        .join(products, on="product", how="left")
        .join(accounts, on="account", how="left")
    )
    enriched = add_time_buckets(enriched).withColumn("team_label", team_label())

    logger.debug("Built enriched opportunity plan")
    return enriched.select(*ENRICHED_COLUMNS)
