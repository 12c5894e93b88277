"""Pydantic models for dashboard server responses."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gcore_dashboard.core.models import AccountSummary, DashboardTotals


class DashboardResponse(BaseModel):
    """Every account summary plus the totals row."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    month: str
    accounts: list[AccountSummary]
    totals: DashboardTotals


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    stored_keys: int = 0
