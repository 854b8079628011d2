"""
Pydantic data models for the Sales Performance Analytics API.

All response schemas are defined here so they can be shared across routers,
services, and tests.  Metrics that cannot be computed for a period (no prior
quarter, no won deals) are ``None`` and serialise as JSON ``null``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Team performance
# ---------------------------------------------------------------------------
class TeamPerformanceRow(BaseModel):
    """Quarterly metrics for one team manager."""

    regional_office: str | None = None
    team_manager: str | None = None
    year: int
    quarter: int = Field(..., ge=1, le=4)
    total_revenue: float | None = None
    previous_period_revenue: float | None = None
    revenue_delta: float | None = None
    opportunity_count: int
    won_count: int
    win_rate: float | None = Field(None, ge=0.0, le=100.0)
    avg_deal_size: float | None = None
    revenue_delta_pct: float | None = None


class TeamComparisonRow(BaseModel):
    """One team's revenue in a period against its previous period."""

    team_manager: str | None = None
    total_revenue: float | None = None
    previous_period_revenue: float | None = None
    revenue_delta: float | None = None
    revenue_delta_pct: float | None = None


class OpportunityDistributionRow(BaseModel):
    """Quarterly opportunities of one agent alongside its team's totals."""

    year: int
    quarter: int = Field(..., ge=1, le=4)
    team_manager: str | None = None
    sales_agent: str | None = None
    num_opportunities_agent: int
    revenue: float | None = None
    total_won_deals: int
    num_opportunities_per_team: int
    total_revenue_per_team: float | None = None


# ---------------------------------------------------------------------------
# Agent performance
# ---------------------------------------------------------------------------
class AgentPerformanceRow(BaseModel):
    """Quarterly metrics for one sales agent."""

    team_manager: str | None = None
    sales_agent: str | None = None
    year: int
    quarter: int = Field(..., ge=1, le=4)
    quarterly_revenue: float | None = None
    num_won_deals: int
    num_opportunities_per_agent: int
    sales_cycle_length: int | None = Field(
        None, description="Days to close per won deal, truncated toward zero"
    )
    win_rate: float | None = Field(None, ge=0.0, le=100.0)
    avg_deal_size: float | None = None
    previous_period_revenue: float | None = None
    revenue_delta: float | None = None
    revenue_delta_pct: float | None = None


class AgentSummary(BaseModel):
    """All-time revenue and average performance factors for one agent."""

    sales_agent: str | None = None
    total_revenue: float | None = None
    avg_sales_cycle_length: float | None = None
    avg_win_rate: float | None = None
    avg_deal_size: float | None = None


class AgentQuarterDistribution(BaseModel):
    """Spread of agent revenue and won deals within one quarter."""

    year: int
    quarter: int = Field(..., ge=1, le=4)
    avg_quarterly_revenue: float | None = None
    min_quarterly_revenue: float | None = None
    max_quarterly_revenue: float | None = None
    avg_num_won_deals: float | None = None
    min_num_won_deals: int | None = None
    max_num_won_deals: int | None = None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class SalesPerformanceRow(BaseModel):
    """Decile rank and performance tier of one agent in one quarter."""

    team_manager: str | None = None
    sales_agent: str | None = None
    year: int
    quarter: int = Field(..., ge=1, le=4)
    total_revenue: float | None = None
    revenue_percentile: int = Field(..., ge=1, le=10)
    performance_category: str


# ---------------------------------------------------------------------------
# Sales trends
# ---------------------------------------------------------------------------
class YearlySales(BaseModel):
    year: int
    total_sales: float | None = None


class QuarterlySales(BaseModel):
    year: int
    quarter: int = Field(..., ge=1, le=4)
    total_sales: float | None = None
    percentage_change: float | None = None


class RevenueShare(BaseModel):
    """Total revenue for one value of a breakdown dimension."""

    dimension: str
    value: str | None = None
    total_revenue: float | None = None


class PriceRange(BaseModel):
    """Close-value range an agent achieved on a product vs its list price."""

    team_manager: str | None = None
    sales_agent: str | None = None
    product: str | None = None
    sales_price: float | None = None
    min_close_value: float
    max_close_value: float
    avg_close_value: float


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
class RefreshResponse(BaseModel):
    status: str
    evicted: int
