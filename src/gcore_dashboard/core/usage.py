"""Month-to-date usage projections and traffic series summaries."""

import calendar
from datetime import datetime, timezone
from typing import Any

from gcore_dashboard.core.models import DailyTraffic, TrafficSeriesSummary, UsageProjection
from gcore_dashboard.utils.constants import TRAFFIC_METRIC

DAYS_PER_MONTH_ESTIMATE = 30
TREND_TOLERANCE = 0.1


def project_usage(used: float, limit: float, now: datetime) -> UsageProjection:
    """Project month-end traffic from the usage so far.

    Args:
        used: Traffic used this month, in GB
        limit: Monthly limit, in GB
        now: Current time; its day of month is the number of elapsed days
    """
    elapsed_days = max(now.day, 1)
    daily_average = used / elapsed_days
    days_in_month = calendar.monthrange(now.year, now.month)[1]

    remaining_quota = None
    if used and limit:
        remaining_quota = max(0, min(100, round((1 - used / limit) * 100)))

    return UsageProjection(
        daily_average=daily_average,
        projected_monthly=daily_average * DAYS_PER_MONTH_ESTIMATE,
        days_remaining=days_in_month - now.day,
        remaining_quota=remaining_quota,
    )


def _format_timestamp(value: Any) -> str:
    if isinstance(value, (int, float)):
        # series timestamps are unix seconds
        return datetime.fromtimestamp(value, tz=timezone.utc).date().isoformat()
    return str(value)


def summarize_series(payload: Any, metric: str = TRAFFIC_METRIC) -> TrafficSeriesSummary | None:
    """Summarize a detailed traffic payload.

    Returns None when the payload does not carry a ``metrics.<metric>`` series.
    """
    try:
        series = payload["metrics"][metric]
        daily = [
            DailyTraffic(timestamp=_format_timestamp(ts), bytes=float(value))
            for ts, value in series
        ]
    except (KeyError, TypeError, ValueError):
        return None

    if not daily:
        return TrafficSeriesSummary(daily=[])

    peak = max(daily, key=lambda point: point.bytes)
    return TrafficSeriesSummary(
        daily=daily,
        peak_day=peak.timestamp,
        trend=_trend([point.bytes for point in daily]),
    )


def _trend(values: list[float]) -> str:
    if len(values) < 2:
        return "stable"

    middle = len(values) // 2
    first = sum(values[:middle]) / middle
    second = sum(values[middle:]) / (len(values) - middle)

    if first == 0:
        return "up" if second > 0 else "stable"
    if second > first * (1 + TREND_TOLERANCE):
        return "up"
    if second < first * (1 - TREND_TOLERANCE):
        return "down"
    return "stable"
