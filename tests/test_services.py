"""
Tests for the cached view lifecycle in the performance service.

The pipeline itself is patched out, so these run without a Spark session.
"""

from unittest.mock import MagicMock, patch

import pytest

from sales_performance.services import performance
from sales_performance.utils import spark_client
from sales_performance.utils.config import CACHE_TTL


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def built_views():
    """Patch the pipeline so each build returns the next mock view set."""
    first, second = MagicMock(name="first"), MagicMock(name="second")
    spark_client.invalidate_cache()
    with patch.object(performance, "get_spark_session"), \
         patch.object(performance, "load_sources"), \
         patch.object(performance, "build_views", side_effect=[first, second]) as mock_build:
        yield first, second, mock_build
    spark_client.invalidate_cache()


# ---------------------------------------------------------------------------
# View lifecycle
# ---------------------------------------------------------------------------
class TestViewLifecycle:

    def test_views_reused_within_ttl(self, built_views):
        first, _, mock_build = built_views
        assert performance.get_views() is first
        assert performance.get_views() is first
        assert mock_build.call_count == 1

    def test_expired_views_released_before_rebuild(self, built_views):
        first, second, mock_build = built_views
        assert performance.get_views() is first

        spark_client._cache_time[performance._VIEWS_KEY] -= CACHE_TTL + 1
        assert performance.get_views() is second
        assert mock_build.call_count == 2
        assert first.release.call_count == 1
        second.release.assert_not_called()

        assert performance.refresh_views() == 1
        assert first.release.call_count == 1
        assert second.release.call_count == 1

    def test_refresh_without_cached_views(self, built_views):
        assert performance.refresh_views() == 0
