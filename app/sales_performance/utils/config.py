"""
Configuration module for the Sales Performance Analytics service.

All settings are configurable via environment variables with sensible defaults
for local Spark execution.  A ``.env`` file in the working directory is loaded
automatically.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Source tables
# ---------------------------------------------------------------------------
# "table" reads from the metastore / Unity Catalog, "csv" reads from SOURCE_DIR
SOURCE_FORMAT: str = os.getenv("SOURCE_FORMAT", "csv")
SOURCE_DIR: str = os.getenv("SOURCE_DIR", "data")

CATALOG_NAME: str = os.getenv("CATALOG_NAME", "spark_catalog")
SCHEMA_SILVER: str = os.getenv("SCHEMA_SILVER", "maven_crm")


def _fqn(schema: str, table: str) -> str:
    """Return a fully-qualified three-level table name."""
    return f"{CATALOG_NAME}.{schema}.{table}"


TABLE_SALES_PIPELINE: str = _fqn(SCHEMA_SILVER, "sales_pipeline")
TABLE_SALES_TEAMS: str = _fqn(SCHEMA_SILVER, "sales_teams")
TABLE_ACCOUNTS: str = _fqn(SCHEMA_SILVER, "accounts")
TABLE_PRODUCTS: str = _fqn(SCHEMA_SILVER, "products")

# ---------------------------------------------------------------------------
# Spark
# ---------------------------------------------------------------------------
SPARK_MASTER: str = os.getenv("SPARK_MASTER", "local[*]")
SPARK_APP_NAME: str = os.getenv("SPARK_APP_NAME", "sales-performance-analytics")
SPARK_SHUFFLE_PARTITIONS: int = int(os.getenv("SPARK_SHUFFLE_PARTITIONS", "8"))

# ---------------------------------------------------------------------------
# Metric rules
# ---------------------------------------------------------------------------
# Placeholder written by upstream cleansing for opportunities without account
ACCOUNT_PLACEHOLDER: str = "Not Available"

DECILE_BUCKETS: int = 10
HIGH_PERFORMER_MIN_BUCKET: int = 9
UNDERPERFORMER_MAX_BUCKET: int = 1

CATEGORY_HIGH: str = "High-performing"
CATEGORY_AVERAGE: str = "Average performer"
CATEGORY_UNDER: str = "Consistently underperforming"

# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------
CACHE_TTL: int = int(os.getenv("CACHE_TTL", "300"))  # seconds

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_TITLE: str = "Sales Performance Analytics"
APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
