"""Pydantic models for the dashboard views.

These are derived on every load and never persisted. They serialize with
camelCase keys (``model_dump(by_alias=True)``).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DashboardModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountSummary(DashboardModel):
    """Current usage state of one stored credential."""

    id: str
    name: str
    status: Literal["active", "error"]
    traffic_used: float = 0.0
    traffic_limit: float = 0.0
    account_info: Any = None
    error: str | None = None


class DashboardTotals(DashboardModel):
    """Aggregates over every account on the dashboard."""

    total_accounts: int
    active_accounts: int
    error_accounts: int
    total_traffic_used: float
    total_traffic_limit: float
    usage_percentage: int


class DailyTraffic(DashboardModel):
    timestamp: str
    bytes: float


class TrafficSeriesSummary(DashboardModel):
    """Daily points, busiest day and direction of a detailed traffic series."""

    daily: list[DailyTraffic]
    peak_day: str | None = None
    trend: Literal["up", "down", "stable"] = "stable"


class UsageProjection(DashboardModel):
    """Month-to-date averages and end-of-month estimates, in GB."""

    daily_average: float
    projected_monthly: float
    days_remaining: int
    remaining_quota: int | None = None


class AccountDetail(DashboardModel):
    """Everything shown for a single account."""

    id: str
    name: str
    masked_api_key: str
    created_at: str
    updated_at: str | None = None
    is_active: bool
    account_info: Any = None
    traffic_used: float
    traffic_limit: float
    usage_percentage: int
    projection: UsageProjection
    detailed_traffic: Any = None
    traffic_series: TrafficSeriesSummary | None = None
