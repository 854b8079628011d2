"""
Spark session singleton and computed-view cache.

Provides a single SparkSession for the process (local master by default,
configurable through ``SPARK_MASTER``) and a small TTL cache used by the
service layer to hold computed result sets between requests.  Cached entries
are released explicitly via :func:`invalidate_cache`.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from pyspark.sql import SparkSession

from sales_performance.utils.config import (
    CACHE_TTL,
    SPARK_APP_NAME,
    SPARK_MASTER,
    SPARK_SHUFFLE_PARTITIONS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# In-memory result cache
# ---------------------------------------------------------------------------
_cache: dict[str, Any] = {}
_cache_time: dict[str, float] = {}


def cache_get(key: str) -> Any | None:
    """Return cached value if still within TTL, else None."""
    if key in _cache and (time.time() - _cache_time.get(key, 0)) < CACHE_TTL:
        return _cache[key]
    return None


def cache_set(key: str, value: Any) -> None:
    _cache[key] = value
    _cache_time[key] = time.time()


def invalidate_cache(prefix: str | None = None) -> list[Any]:
    """Clear all cached entries, or only those whose key starts with *prefix*.

    Returns the evicted values so callers can release any resources they hold
    (e.g. unpersist cached DataFrames).
    """
    if prefix is None:
        keys = list(_cache)
    else:
        keys = [k for k in _cache if k.startswith(prefix)]

    evicted = []
    for k in keys:
        evicted.append(_cache.pop(k, None))
        _cache_time.pop(k, None)
    if keys:
        logger.info("Invalidated %d cache entries", len(keys))
    return [v for v in evicted if v is not None]


# ---------------------------------------------------------------------------
# Singleton session
# ---------------------------------------------------------------------------
_session: SparkSession | None = None


def get_spark_session() -> SparkSession:
    """Return a cached SparkSession (created on first call).

    When running inside an existing Spark runtime the active session is
    reused; otherwise a new one is built against ``SPARK_MASTER``.
    """
    global _session
    if _session is not None:
        return _session

    active = SparkSession.getActiveSession()
    if active is not None:
        logger.info("Reusing active SparkSession")
        _session = active
        return _session

    logger.info("Initializing SparkSession (master=%s)", SPARK_MASTER)
    _session = (
        SparkSession.builder
        .master(SPARK_MASTER)
        .appName(SPARK_APP_NAME)
        .config("spark.sql.shuffle.partitions", str(SPARK_SHUFFLE_PARTITIONS))
        .config("spark.sql.session.timeZone", "UTC")
        .getOrCreate()
    )
    return _session
