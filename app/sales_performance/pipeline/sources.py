"""
Bulk read of the four CRM input tables.

The tables are assumed to be already cleansed upstream: dates are ``DATE``
values, close values are numeric, string keys are normalised and missing
account keys carry the ``"Not Available"`` placeholder.  This module only
reads them (from the metastore or from CSV files) and checks that the
columns the pipeline relies on are present.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import (
    DateType,
    DoubleType,
    IntegerType,
    StringType,
    StructField,
    StructType,
)

from sales_performance.utils.config import (
    SOURCE_DIR,
    SOURCE_FORMAT,
    TABLE_ACCOUNTS,
    TABLE_PRODUCTS,
    TABLE_SALES_PIPELINE,
    TABLE_SALES_TEAMS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------
SALES_PIPELINE_SCHEMA = StructType([
    StructField("opportunity_id", StringType(), True),
    StructField("sales_agent", StringType(), True),
    StructField("product", StringType(), True),
    StructField("account", StringType(), True),
    StructField("deal_stage", StringType(), True),
    StructField("engage_date", DateType(), True),
    StructField("close_date", DateType(), True),
    StructField("close_value", DoubleType(), True),
])

SALES_TEAMS_SCHEMA = StructType([
    StructField("sales_agent", StringType(), True),
    StructField("manager", StringType(), True),
    StructField("regional_office", StringType(), True),
])

ACCOUNTS_SCHEMA = StructType([
    StructField("account", StringType(), True),
    StructField("sector", StringType(), True),
    StructField("year_established", IntegerType(), True),
    StructField("revenue", DoubleType(), True),
    StructField("employees", IntegerType(), True),
    StructField("office_location", StringType(), True),
    StructField("subsidiary_of", StringType(), True),
])

PRODUCTS_SCHEMA = StructType([
    StructField("product", StringType(), True),
    StructField("series", StringType(), True),
    StructField("sales_price", DoubleType(), True),
])

# Columns the pipeline reads from each table
REQUIRED_COLUMNS: dict[str, list[str]] = {
    "sales_pipeline": [
        "sales_agent", "product", "account", "deal_stage",
        "engage_date", "close_date", "close_value",
    ],
    "sales_teams": ["sales_agent", "manager", "regional_office"],
    "accounts": ["account", "sector", "office_location"],
    "products": ["product", "sales_price"],
}

_SCHEMAS: dict[str, StructType] = {
    "sales_pipeline": SALES_PIPELINE_SCHEMA,
    "sales_teams": SALES_TEAMS_SCHEMA,
    "accounts": ACCOUNTS_SCHEMA,
    "products": PRODUCTS_SCHEMA,
}

_TABLES: dict[str, str] = {
    "sales_pipeline": TABLE_SALES_PIPELINE,
    "sales_teams": TABLE_SALES_TEAMS,
    "accounts": TABLE_ACCOUNTS,
    "products": TABLE_PRODUCTS,
}


@dataclass(frozen=True)
class SalesSources:
    """The four cleansed input tables of one pipeline run."""

    opportunities: DataFrame
    agents: DataFrame
    accounts: DataFrame
    products: DataFrame


def validate_columns(df: DataFrame, name: str) -> DataFrame:
    """Raise ``ValueError`` if *df* lacks any column required for table *name*."""
    missing = [c for c in REQUIRED_COLUMNS[name] if c not in df.columns]
    if missing:
        raise ValueError(f"Source table '{name}' is missing required columns: {missing}")
    return df


def _read_csv(spark: SparkSession, name: str, source_dir: str) -> DataFrame:
    path = os.path.join(source_dir, f"{name}.csv")
    logger.debug("Reading %s from %s", name, path)
    return (
        spark.read
        .option("header", "true")
        .option("dateFormat", "yyyy-MM-dd")
        .schema(_SCHEMAS[name])
        .csv(path)
    )


def _read_table(spark: SparkSession, name: str) -> DataFrame:
    logger.debug("Reading %s from %s", name, _TABLES[name])
    return spark.read.table(_TABLES[name])


def load_sources(
    spark: SparkSession,
    *,
    source_format: str | None = None,
    source_dir: str | None = None,
) -> SalesSources:
    """Read the four input tables.

    Parameters
    ----------
    spark:
        Active Spark session.
    source_format:
        ``"table"`` to read fully-qualified metastore tables or ``"csv"`` to
        read ``<source_dir>/<table>.csv``.  Defaults to ``SOURCE_FORMAT``.
    source_dir:
        Directory holding the CSV files.  Defaults to ``SOURCE_DIR``.

    Returns
    -------
    SalesSources
        Opportunities plus the agent, account and product dimensions.
    """
    fmt = (source_format or SOURCE_FORMAT).lower()
    if fmt not in ("table", "csv"):
        raise ValueError(f"Unsupported source format '{fmt}' (expected 'table' or 'csv')")

    frames: dict[str, DataFrame] = {}
    for name in _SCHEMAS:
        if fmt == "csv":
            df = _read_csv(spark, name, source_dir or SOURCE_DIR)
        else:
            df = _read_table(spark, name)
        frames[name] = validate_columns(df, name)

    logger.info("Loaded source tables (%s): %s", fmt, ", ".join(frames))
    return SalesSources(
        opportunities=frames["sales_pipeline"],
        agents=frames["sales_teams"],
        accounts=frames["accounts"],
        products=frames["products"],
    )
