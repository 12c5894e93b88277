"""Core GCore API access and dashboard aggregation."""

from gcore_dashboard.core.aggregator import (
    AccountAggregator,
    gather_isolated,
    summarize_totals,
)
from gcore_dashboard.core.gcore import GCoreClient, MonthlyTraffic
from gcore_dashboard.core.results import (
    ApiResult,
    ConnectionTestResult,
    ErrorKind,
    GCoreAPIError,
)

__all__ = [
    "GCoreClient",
    "MonthlyTraffic",
    "AccountAggregator",
    "gather_isolated",
    "summarize_totals",
    "ApiResult",
    "ConnectionTestResult",
    "ErrorKind",
    "GCoreAPIError",
]
