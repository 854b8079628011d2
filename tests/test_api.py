"""
Tests for the FastAPI endpoints.

Uses fastapi.testclient.TestClient with the source loader patched to return
the in-memory sample tables, so the real pipeline runs on a local Spark
session without any metastore or CSV files.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from sales_performance.utils.spark_client import invalidate_cache


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="module")
def client(spark, sample_sources):
    """Create a TestClient whose views are built from the sample sources."""
    invalidate_cache()
    with patch(
        "sales_performance.services.performance.get_spark_session", return_value=spark
    ), patch(
        "sales_performance.services.performance.load_sources", return_value=sample_sources
    ) as mock_load:
        from sales_performance.main import app

        with TestClient(app) as test_client:
            test_client.mock_load = mock_load
            yield test_client
    invalidate_cache()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
class TestHealthCheck:

    def test_health_check(self, client):
        """GET /health should return 200 with a status field."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# Team performance
# ---------------------------------------------------------------------------
class TestTeamPerformance:

    def test_list(self, client):
        response = client.get("/api/v1/team-performance/")
        assert response.status_code == 200

        data = response.json()
        assert len(data) == 6
        first = data[0]
        for key in ("team_manager", "total_revenue", "win_rate", "revenue_delta_pct"):
            assert key in first

    def test_filter_by_period(self, client):
        response = client.get("/api/v1/team-performance/", params={"year": 2017, "quarter": 2})
        assert response.status_code == 200

        data = response.json()
        assert {(r["year"], r["quarter"]) for r in data} == {(2017, 2)}
        park = next(r for r in data if r["team_manager"] == "Yolanda Park")
        assert park["previous_period_revenue"] == 1000.0
        assert park["revenue_delta"] == 500.0
        assert park["revenue_delta_pct"] == 50.0

    def test_nulls_serialised(self, client):
        response = client.get(
            "/api/v1/team-performance/",
            params={"year": 2017, "quarter": 1, "team_manager": "Zelda Moss"},
        )
        row = response.json()[0]
        assert row["previous_period_revenue"] is None
        assert row["avg_deal_size"] is None

    def test_invalid_quarter(self, client):
        response = client.get("/api/v1/team-performance/", params={"quarter": 5})
        assert response.status_code == 422

    def test_top_team_defaults_to_latest_period(self, client):
        response = client.get("/api/v1/team-performance/top")
        assert response.status_code == 200

        data = response.json()
        assert (data["year"], data["quarter"]) == (2017, 2)
        assert data["team_manager"] == "Yolanda Park"

    def test_top_team_missing_period(self, client):
        response = client.get("/api/v1/team-performance/top", params={"year": 2010, "quarter": 1})
        assert response.status_code == 404

    def test_comparison(self, client):
        response = client.get(
            "/api/v1/team-performance/comparison", params={"year": 2017, "quarter": 2}
        )
        assert response.status_code == 200

        data = response.json()
        assert [r["team_manager"] for r in data] == [
            "Yolanda Park", "Zelda Moss", "Dustin Brinkmann",
        ]
        assert data[0]["previous_period_revenue"] == 1000.0
        assert data[0]["revenue_delta_pct"] == 50.0

    def test_comparison_defaults_to_latest_period(self, client):
        response = client.get("/api/v1/team-performance/comparison")
        assert response.status_code == 200
        assert response.json()[0]["total_revenue"] == 1500.0


# ---------------------------------------------------------------------------
# Agent performance
# ---------------------------------------------------------------------------
class TestAgentPerformance:

    def test_filter_by_agent(self, client):
        response = client.get(
            "/api/v1/agent-performance/",
            params={"sales_agent": "Xavier Quinn", "year": 2017, "quarter": 1},
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data) == 1
        assert data[0]["win_rate"] == 66.67
        assert data[0]["avg_deal_size"] == 150.0
        assert data[0]["sales_cycle_length"] == 30

    def test_summary(self, client):
        response = client.get("/api/v1/agent-performance/summary")
        assert response.status_code == 200

        data = response.json()
        assert data[0]["sales_agent"] == "Yara Holt"
        assert data[0]["total_revenue"] == 2500.0

    def test_distribution(self, client):
        response = client.get("/api/v1/agent-performance/distribution")
        assert response.status_code == 200

        data = {(r["year"], r["quarter"]): r for r in response.json()}
        q1 = data[(2017, 1)]
        assert q1["avg_quarterly_revenue"] == 325.0
        assert q1["min_quarterly_revenue"] == 0.0
        assert q1["max_quarterly_revenue"] == 1000.0
        assert q1["max_num_won_deals"] == 2
        assert data[(2017, 2)]["min_num_won_deals"] == 0


# ---------------------------------------------------------------------------
# Opportunity distribution
# ---------------------------------------------------------------------------
class TestOpportunityDistribution:

    def test_team_totals_alongside_agents(self, client):
        response = client.get(
            "/api/v1/opportunity-distribution/",
            params={"year": 2017, "quarter": 1, "team_manager": "Dustin Brinkmann"},
        )
        assert response.status_code == 200

        data = response.json()
        assert [r["sales_agent"] for r in data] == ["Moses Frase", "Xavier Quinn"]
        assert data[1]["num_opportunities_agent"] == 3
        assert data[1]["total_won_deals"] == 2
        for row in data:
            assert row["num_opportunities_per_team"] == 5
            assert row["total_revenue_per_team"] == 300.0

    def test_invalid_quarter(self, client):
        response = client.get("/api/v1/opportunity-distribution/", params={"quarter": 0})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class TestClassification:

    def test_list(self, client):
        response = client.get(
            "/api/v1/performance-classification/", params={"year": 2017, "quarter": 1}
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data) == 4
        assert data[0]["sales_agent"] == "Yara Holt"
        assert all(1 <= r["revenue_percentile"] <= 10 for r in data)

    def test_filter_by_category(self, client):
        response = client.get(
            "/api/v1/performance-classification/",
            params={"category": "Consistently underperforming"},
        )
        assert response.status_code == 200
        agents = {r["sales_agent"] for r in response.json()}
        assert agents == {"Moses Frase"}

    def test_unknown_category(self, client):
        response = client.get(
            "/api/v1/performance-classification/", params={"category": "Superstar"}
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Sales trends
# ---------------------------------------------------------------------------
class TestSalesTrends:

    def test_quarterly(self, client):
        response = client.get("/api/v1/sales-trends/quarterly")
        assert response.status_code == 200

        data = response.json()
        assert data[0]["percentage_change"] is None
        assert data[1]["percentage_change"] == 84.62

    def test_yearly(self, client):
        response = client.get("/api/v1/sales-trends/yearly")
        assert response.json() == [{"year": 2017, "total_sales": 3700.0}]

    def test_distribution(self, client):
        response = client.get("/api/v1/sales-trends/distribution/regional_office")
        assert response.status_code == 200

        data = response.json()
        assert data[0] == {
            "dimension": "regional_office",
            "value": "East",
            "total_revenue": 2500.0,
        }

    def test_unknown_dimension(self, client):
        response = client.get("/api/v1/sales-trends/distribution/deal_stage")
        assert response.status_code == 404

    def test_price_vs_close(self, client):
        response = client.get(
            "/api/v1/sales-trends/price-vs-close", params={"sales_agent": "Yara Holt"}
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data) == 1
        assert data[0]["avg_close_value"] == 1250.0


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------
class TestRefresh:

    def test_views_cached_until_refresh(self, client):
        client.get("/api/v1/team-performance/")
        calls_before = client.mock_load.call_count

        client.get("/api/v1/agent-performance/")
        assert client.mock_load.call_count == calls_before

        response = client.post("/api/v1/refresh")
        assert response.status_code == 200
        assert response.json() == {"status": "invalidated", "evicted": 1}

        client.get("/api/v1/team-performance/")
        assert client.mock_load.call_count == calls_before + 1
