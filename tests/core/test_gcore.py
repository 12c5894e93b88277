from datetime import datetime
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from gcore_dashboard.core.gcore import (
    GCoreClient,
    MonthlyTraffic,
    start_of_month,
    sum_series,
    to_api_timestamp,
)
from gcore_dashboard.core.results import ErrorKind, GCoreAPIError

IAM_URL = "https://api.gcore.com/iam/users"


def series_route(respx_mock: Any) -> Any:
    return respx_mock.get(host="api.gcore.com", path="/cdn/statistics/series")


class TestGCoreClientRequests:
    """Test suite for request construction and transport error handling."""

    @pytest.mark.unit
    async def test_sends_api_key_header(
        self, respx_mock: Any, gcore_client: GCoreClient, sample_api_key: str
    ) -> None:
        """Test that every request carries the APIKey authorization header."""
        route = respx_mock.get(IAM_URL).mock(
            return_value=httpx.Response(200, json={"account": []})
        )

        await gcore_client.get_account_info()

        request = route.calls.last.request
        assert request.headers["Authorization"] == f"APIKey {sample_api_key}"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.unit
    async def test_custom_base_url(self, respx_mock: Any, sample_api_key: str) -> None:
        """Test that a custom base URL is used and its trailing slash dropped."""
        route = respx_mock.get("https://gcore.internal/iam/users").mock(
            return_value=httpx.Response(200, json={})
        )
        client = GCoreClient(sample_api_key, base_url="https://gcore.internal/")

        result = await client.get_account_info()

        assert result.ok
        assert route.called

    @pytest.mark.unit
    async def test_http_error_message(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that non-2xx responses become HTTP status failures."""
        respx_mock.get(IAM_URL).mock(return_value=httpx.Response(401))

        result = await gcore_client._make_request("/iam/users")

        assert not result.ok
        assert result.error_kind == ErrorKind.HTTP_STATUS
        assert result.message == "API request failed: 401 Unauthorized"

    @pytest.mark.unit
    async def test_transport_error(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that network failures become transport failures."""
        respx_mock.get(IAM_URL).mock(side_effect=httpx.ConnectError("Connection failed"))

        result = await gcore_client._make_request("/iam/users")

        assert not result.ok
        assert result.error_kind == ErrorKind.TRANSPORT
        assert result.message == "API request failed: Connection failed"

    @pytest.mark.unit
    async def test_invalid_json(self, respx_mock: Any, gcore_client: GCoreClient) -> None:
        """Test that an undecodable body is reported as malformed."""
        respx_mock.get(IAM_URL).mock(return_value=httpx.Response(200, content=b"<html>"))

        result = await gcore_client._make_request("/iam/users")

        assert not result.ok
        assert result.error_kind == ErrorKind.MALFORMED_RESPONSE

    @pytest.mark.unit
    @patch("httpx.AsyncClient")
    async def test_timeout_is_passed(
        self, mock_client_cls: Any, http_mock_helpers: Any, sample_api_key: str
    ) -> None:
        """Test that the configured timeout reaches httpx."""
        mock_async_client = http_mock_helpers.setup_httpx_mock(mock_client_cls, {})
        client = GCoreClient(sample_api_key, timeout=5.0)

        await client.get_account_info()

        assert mock_async_client.get.call_args.kwargs["timeout"] == 5.0


class TestConnectionTest:
    """Test suite for test_connection."""

    @pytest.mark.unit
    async def test_success(
        self,
        respx_mock: Any,
        gcore_client: GCoreClient,
        account_info_payload: dict[str, Any],
    ) -> None:
        """Test a successful identity check."""
        respx_mock.get(IAM_URL).mock(
            return_value=httpx.Response(200, json=account_info_payload)
        )

        result = await gcore_client.test_connection()

        assert result.success is True
        assert result.data == account_info_payload
        assert result.error is None

    @pytest.mark.unit
    async def test_failure_does_not_raise(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that a rejected key yields a structured failure."""
        respx_mock.get(IAM_URL).mock(return_value=httpx.Response(403))

        result = await gcore_client.test_connection()

        assert result.success is False
        assert result.error == "API request failed: 403 Forbidden"

    @pytest.mark.unit
    @pytest.mark.parametrize("error_name", ["timeout", "connection_error"])
    @patch("httpx.AsyncClient")
    async def test_transport_failures(
        self,
        mock_client_cls: Any,
        error_name: str,
        http_mock_helpers: Any,
        common_http_errors: dict[str, Any],
        gcore_client: GCoreClient,
    ) -> None:
        """Test that timeouts and connection errors never escape."""
        http_mock_helpers.setup_httpx_mock(
            mock_client_cls, side_effect=common_http_errors[error_name]
        )

        result = await gcore_client.test_connection()

        assert result.success is False
        assert result.error.startswith("API request failed: ")

    @pytest.mark.unit
    @patch("httpx.AsyncClient")
    async def test_unexpected_exception(
        self, mock_client_cls: Any, http_mock_helpers: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that even unexpected errors are converted to a failure."""
        http_mock_helpers.setup_httpx_mock(
            mock_client_cls, side_effect=RuntimeError("boom")
        )

        result = await gcore_client.test_connection()

        assert result.success is False
        assert result.error == "boom"


class TestAccountInfo:
    """Test suite for get_account_info."""

    @pytest.mark.unit
    async def test_success(
        self,
        respx_mock: Any,
        gcore_client: GCoreClient,
        account_info_payload: dict[str, Any],
    ) -> None:
        respx_mock.get(IAM_URL).mock(
            return_value=httpx.Response(200, json=account_info_payload)
        )

        result = await gcore_client.get_account_info()

        assert result.ok
        assert result.unwrap() == account_info_payload

    @pytest.mark.unit
    async def test_failure_has_context(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that failures are prefixed with the operation."""
        respx_mock.get(IAM_URL).mock(return_value=httpx.Response(500))

        result = await gcore_client.get_account_info()

        assert not result.ok
        assert result.message == (
            "Failed to fetch account info: API request failed: 500 Internal Server Error"
        )
        with pytest.raises(GCoreAPIError) as exc_info:
            result.unwrap()
        assert exc_info.value.kind == ErrorKind.HTTP_STATUS


class TestMonthlyTraffic:
    """Test suite for get_monthly_traffic."""

    @pytest.mark.unit
    async def test_sums_series_in_gb(
        self,
        respx_mock: Any,
        gcore_client: GCoreClient,
        monthly_traffic_payload: dict[str, Any],
    ) -> None:
        """Test that the daily series is summed and converted to GB."""
        series_route(respx_mock).mock(
            return_value=httpx.Response(200, json=monthly_traffic_payload)
        )

        result = await gcore_client.get_monthly_traffic()

        assert result.ok
        assert result.value == MonthlyTraffic(limit=1000, used=1.5)

    @pytest.mark.unit
    async def test_query_parameters(
        self,
        respx_mock: Any,
        gcore_client: GCoreClient,
        monthly_traffic_payload: dict[str, Any],
    ) -> None:
        """Test the month-to-date window and series parameters."""
        route = series_route(respx_mock).mock(
            return_value=httpx.Response(200, json=monthly_traffic_payload)
        )

        await gcore_client.get_monthly_traffic()

        params = route.calls.last.request.url.params
        assert params["service"] == "CDN"
        assert params["from"] == "2024-05-01T00:00:00.000Z"
        assert params["to"] == "2024-05-17T14:30:00.000Z"
        assert params["granularity"] == "1d"
        assert params["metrics"] == "total_bytes"

    @pytest.mark.unit
    async def test_empty_series(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        series_route(respx_mock).mock(
            return_value=httpx.Response(200, json={"metrics": {"total_bytes": []}})
        )

        result = await gcore_client.get_monthly_traffic()

        assert result.ok
        assert result.value.used == 0

    @pytest.mark.unit
    async def test_fractional_values_are_summed(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that fractional byte counts are not truncated."""
        series = [[1714521600, 0.4e9], [1714608000, 0.35e9], [1714694400, 0.75]]
        series_route(respx_mock).mock(
            return_value=httpx.Response(200, json={"metrics": {"total_bytes": series}})
        )

        result = await gcore_client.get_monthly_traffic()

        assert result.ok
        assert result.value.used == pytest.approx(0.75 + 0.75e-9)

    @pytest.mark.unit
    async def test_non_numeric_value(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        series_route(respx_mock).mock(
            return_value=httpx.Response(
                200, json={"metrics": {"total_bytes": [[1714521600, "n/a"]]}}
            )
        )

        result = await gcore_client.get_monthly_traffic()

        assert not result.ok
        assert result.error_kind == ErrorKind.MALFORMED_RESPONSE

    @pytest.mark.unit
    async def test_missing_series(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        """Test that a payload without the series is a malformed response."""
        series_route(respx_mock).mock(return_value=httpx.Response(200, json={"metrics": {}}))

        result = await gcore_client.get_monthly_traffic()

        assert not result.ok
        assert result.error_kind == ErrorKind.MALFORMED_RESPONSE
        assert result.message.startswith("Failed to fetch monthly traffic: ")

    @pytest.mark.unit
    async def test_http_failure(self, respx_mock: Any, gcore_client: GCoreClient) -> None:
        series_route(respx_mock).mock(return_value=httpx.Response(502))

        result = await gcore_client.get_monthly_traffic()

        assert not result.ok
        assert result.message == (
            "Failed to fetch monthly traffic: API request failed: 502 Bad Gateway"
        )


class TestDetailedTraffic:
    """Test suite for get_detailed_traffic."""

    @pytest.mark.unit
    async def test_returns_raw_payload(
        self,
        respx_mock: Any,
        gcore_client: GCoreClient,
        detailed_traffic_payload: dict[str, Any],
    ) -> None:
        route = series_route(respx_mock).mock(
            return_value=httpx.Response(200, json=detailed_traffic_payload)
        )

        result = await gcore_client.get_detailed_traffic("2024-05-01", "2024-05-17")

        assert result.ok
        assert result.value == detailed_traffic_payload
        params = route.calls.last.request.url.params
        assert params["from"] == "2024-05-01"
        assert params["to"] == "2024-05-17"

    @pytest.mark.unit
    async def test_failure_has_context(
        self, respx_mock: Any, gcore_client: GCoreClient
    ) -> None:
        series_route(respx_mock).mock(return_value=httpx.Response(404))

        result = await gcore_client.get_detailed_traffic("2024-05-01", "2024-05-17")

        assert not result.ok
        assert result.message.startswith("Failed to fetch detailed traffic: ")


class TestHelpers:
    """Test suite for module-level helpers."""

    @pytest.mark.unit
    def test_to_api_timestamp_naive_is_utc(self) -> None:
        assert to_api_timestamp(datetime(2024, 1, 2, 3, 4, 5, 678000)) == (
            "2024-01-02T03:04:05.678Z"
        )

    @pytest.mark.unit
    def test_start_of_month(self, fixed_now: datetime) -> None:
        start = start_of_month(fixed_now)
        assert (start.day, start.hour, start.minute) == (1, 0, 0)
        assert start.month == fixed_now.month

    @pytest.mark.unit
    def test_sum_series(self, monthly_traffic_payload: dict[str, Any]) -> None:
        assert sum_series(monthly_traffic_payload) == 1_500_000_000

    @pytest.mark.unit
    def test_sum_series_keeps_fractions(self) -> None:
        payload = {"metrics": {"total_bytes": [[1714521600, 1.9], [1714608000, 0.6]]}}
        assert sum_series(payload) == pytest.approx(2.5)

    @pytest.mark.unit
    def test_sum_series_rejects_non_numeric(self) -> None:
        with pytest.raises(ValueError):
            sum_series({"metrics": {"total_bytes": [[1714521600, "lots"]]}})
