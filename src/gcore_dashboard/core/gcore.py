import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from gcore_dashboard.core.results import ApiResult, ConnectionTestResult, ErrorKind
from gcore_dashboard.utils.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    GCORE_API_BASE,
    GCORE_CDN_STATISTICS_ENDPOINT,
    GCORE_IAM_USERS_ENDPOINT,
    MONTHLY_TRAFFIC_LIMIT_GB,
    TRAFFIC_GRANULARITY,
    TRAFFIC_METRIC,
    TRAFFIC_SERVICE,
    USER_AGENT,
)

BYTES_PER_GB = 1e9


@dataclass
class MonthlyTraffic:
    """Traffic used this calendar month, in GB."""

    limit: float
    used: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_api_timestamp(value: datetime) -> str:
    """Format a datetime the way the statistics API expects (UTC, millisecond Z)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def start_of_month(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def sum_series(payload: Any, metric: str = TRAFFIC_METRIC) -> float:
    """Sum the values of a ``[[timestamp, value], ...]`` metric series.

    Raises:
        KeyError, TypeError, ValueError: if the payload does not carry the series
    """
    series = payload["metrics"][metric]
    return sum(float(value) for _, value in series)


class GCoreClient:
    """Client for the GCore IAM and CDN statistics APIs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = GCORE_API_BASE,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the client with the credential it acts for.

        Args:
            api_key: GCore API key, sent as ``Authorization: APIKey <key>``
            base_url: API host, without a trailing slash
            timeout: Per-request timeout in seconds
            clock: Source of "now", used for the monthly traffic window
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"APIKey {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _make_request(
        self, endpoint: str, params: dict[str, str] | None = None
    ) -> ApiResult[Any]:
        """Make a GET request and decode the JSON body.

        Args:
            endpoint: Path relative to the base URL
            params: Optional query parameters

        Returns:
            Decoded JSON on success, a transport/HTTP/malformed failure otherwise
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    url, headers=self._headers(), params=params, timeout=self.timeout
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            reason = e.response.reason_phrase
            self.logger.warning(f"GCore API returned {status} for {endpoint}")
            return ApiResult.failure(
                ErrorKind.HTTP_STATUS, f"API request failed: {status} {reason}".rstrip()
            )
        except httpx.HTTPError as e:
            self.logger.warning(f"GCore API request to {endpoint} failed: {e}")
            return ApiResult.failure(ErrorKind.TRANSPORT, f"API request failed: {e}")
        except ValueError as e:
            self.logger.warning(f"GCore API returned invalid JSON for {endpoint}: {e}")
            return ApiResult.failure(
                ErrorKind.MALFORMED_RESPONSE, f"Invalid JSON response: {e}"
            )

        return ApiResult.success(data)

    async def test_connection(self) -> ConnectionTestResult:
        """Check that the API key is accepted. Never raises."""
        try:
            result = await self._make_request(GCORE_IAM_USERS_ENDPOINT)
        except Exception as e:
            self.logger.error(f"Unexpected error testing connection: {e}")
            return ConnectionTestResult(success=False, error=str(e))

        if result.ok:
            return ConnectionTestResult(success=True, data=result.value)
        return ConnectionTestResult(success=False, error=result.message)

    async def get_account_info(self) -> ApiResult[Any]:
        """Fetch identity and account metadata for the key."""
        result = await self._make_request(GCORE_IAM_USERS_ENDPOINT)
        return result.with_context("Failed to fetch account info")

    async def get_monthly_traffic(self) -> ApiResult[MonthlyTraffic]:
        """Fetch CDN traffic from the first of the month until now.

        The daily ``total_bytes`` series is summed and converted to GB. The
        limit is a fixed placeholder since the API does not report a quota.
        """
        now = self.clock()
        params = self._series_params(
            to_api_timestamp(start_of_month(now)), to_api_timestamp(now)
        )
        result = await self._make_request(GCORE_CDN_STATISTICS_ENDPOINT, params)
        if not result.ok:
            return result.with_context("Failed to fetch monthly traffic")

        try:
            total_bytes = sum_series(result.value)
        except (KeyError, TypeError, ValueError) as e:
            return ApiResult.failure(
                ErrorKind.MALFORMED_RESPONSE,
                f"Failed to fetch monthly traffic: unexpected response shape ({e!r})",
            )

        self.logger.debug(f"Monthly traffic: {total_bytes} bytes")
        return ApiResult.success(
            MonthlyTraffic(limit=MONTHLY_TRAFFIC_LIMIT_GB, used=total_bytes / BYTES_PER_GB)
        )

    async def get_detailed_traffic(self, start_date: str, end_date: str) -> ApiResult[Any]:
        """Fetch the raw daily traffic series for an explicit date range.

        Args:
            start_date: Range start, e.g. ``2024-05-01``
            end_date: Range end, e.g. ``2024-05-17``
        """
        params = self._series_params(start_date, end_date)
        result = await self._make_request(GCORE_CDN_STATISTICS_ENDPOINT, params)
        return result.with_context("Failed to fetch detailed traffic")

    @staticmethod
    def _series_params(start: str, end: str) -> dict[str, str]:
        return {
            "service": TRAFFIC_SERVICE,
            "from": start,
            "to": end,
            "granularity": TRAFFIC_GRANULARITY,
            "metrics": TRAFFIC_METRIC,
        }
