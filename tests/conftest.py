"""
Shared fixtures: a local Spark session and a builder for small in-memory
CRM source tables.

Spark-backed tests are skipped when no Java runtime is available.
"""

from __future__ import annotations

import os
import shutil
import sys
from datetime import date

import pytest

# Ensure the app package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from pyspark.sql import SparkSession  # noqa: E402

from sales_performance.pipeline.sources import (  # noqa: E402
    ACCOUNTS_SCHEMA,
    PRODUCTS_SCHEMA,
    SALES_PIPELINE_SCHEMA,
    SALES_TEAMS_SCHEMA,
    SalesSources,
)

# ---------------------------------------------------------------------------
# Reference dimensions
# ---------------------------------------------------------------------------
AGENTS = [
    # sales_agent, manager, regional_office
    ("Xavier Quinn", "Dustin Brinkmann", "Central"),
    ("Moses Frase", "Dustin Brinkmann", "Central"),
    ("Yara Holt", "Yolanda Park", "East"),
    ("Zane Ortiz", "Zelda Moss", "West"),
]

ACCOUNTS = [
    # account, sector, year_established, revenue, employees, office_location, subsidiary_of
    ("Acme Corporation", "technolgy", 1985, 1100.04, 4822, "United States", None),
    ("Betatech", "medical", 1987, 647.18, 1185, "Kenya", None),
]

PRODUCTS = [
    # product, series, sales_price
    ("GTX Basic", "GTX", 550.0),
    ("MG Special", "MG", 55.0),
]


def opp(
    opportunity_id: str,
    sales_agent: str,
    deal_stage: str,
    engage_date: date | None,
    close_date: date | None,
    close_value: float | None,
    product: str = "GTX Basic",
    account: str = "Acme Corporation",
) -> tuple:
    """Build one sales_pipeline row in schema column order."""
    return (
        opportunity_id, sales_agent, product, account, deal_stage,
        engage_date, close_date, close_value,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def spark() -> SparkSession:
    """Create or retrieve a local Spark session for testing."""
    if shutil.which("java") is None and not os.environ.get("JAVA_HOME"):
        pytest.skip("Java runtime not available for local Spark")
    return (
        SparkSession.builder
        .master("local[2]")
        .appName("sales-performance-tests")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.session.timeZone", "UTC")
        .config("spark.ui.enabled", "false")
        .getOrCreate()
    )


@pytest.fixture(scope="session")
def make_sources(spark: SparkSession):
    """Return a factory building ``SalesSources`` from plain row tuples."""

    def _make(
        opportunities: list[tuple],
        agents: list[tuple] | None = None,
        accounts: list[tuple] | None = None,
        products: list[tuple] | None = None,
    ) -> SalesSources:
        return SalesSources(
            opportunities=spark.createDataFrame(opportunities, SALES_PIPELINE_SCHEMA),
            agents=spark.createDataFrame(AGENTS if agents is None else agents, SALES_TEAMS_SCHEMA),
            accounts=spark.createDataFrame(ACCOUNTS if accounts is None else accounts, ACCOUNTS_SCHEMA),
            products=spark.createDataFrame(PRODUCTS if products is None else products, PRODUCTS_SCHEMA),
        )

    return _make


@pytest.fixture(scope="session")
def sample_opportunities() -> list[tuple]:
    """A small dataset spanning two quarters and three teams."""
    return [
        # Agent scenario: Xavier, Q1 2017 -> 2 won of 3, revenue 300
        opp("X1", "Xavier Quinn", "Won", date(2017, 1, 5), date(2017, 2, 4), 100.0),
        opp("X2", "Xavier Quinn", "Won", date(2017, 2, 10), date(2017, 3, 2), 200.0, product="MG Special"),
        opp("X3", "Xavier Quinn", "Lost", date(2017, 3, 1), date(2017, 3, 11), 0.0),
        # Moses: Q1 nothing won, Q2 one won
        opp("M1", "Moses Frase", "Lost", date(2017, 2, 1), date(2017, 2, 20), 0.0),
        opp("M2", "Moses Frase", "Engaging", date(2017, 2, 15), None, None),
        opp("M3", "Moses Frase", "Won", date(2017, 5, 3), date(2017, 5, 13), 400.0),
        # Team Park: 1000 in Q1, 1500 in Q2
        opp("Y1", "Yara Holt", "Won", date(2017, 1, 20), date(2017, 2, 1), 1000.0, account="Betatech"),
        opp("Y2", "Yara Holt", "Won", date(2017, 4, 2), date(2017, 4, 30), 1500.0, account="Betatech"),
        # Team Moss: 0 in Q1, 500 in Q2; lowercase stage only counts at team level
        opp("Z1", "Zane Ortiz", "Lost", date(2017, 3, 3), date(2017, 3, 9), 0.0),
        opp("Z2", "Zane Ortiz", "won", date(2017, 6, 1), date(2017, 6, 4), 500.0, account="Not Available"),
        # Unmatched account and product dimensions
        opp("U1", "Zane Ortiz", "Lost", date(2017, 6, 2), date(2017, 6, 9), 0.0,
            product="Ghost Product", account="Unknown Ltd"),
        # No engagement date: excluded from every time-bucketed output
        opp("N1", "Yara Holt", "Prospecting", None, None, None),
    ]


@pytest.fixture(scope="session")
def sample_sources(make_sources, sample_opportunities) -> SalesSources:
    return make_sources(sample_opportunities)
