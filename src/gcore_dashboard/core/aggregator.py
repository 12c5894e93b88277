"""Per-account data aggregation for the dashboard."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from gcore_dashboard.core.formatters import format_usage_percentage, mask_api_key
from gcore_dashboard.core.gcore import GCoreClient, MonthlyTraffic, start_of_month
from gcore_dashboard.core.models import AccountDetail, AccountSummary, DashboardTotals
from gcore_dashboard.core.results import ApiResult, ErrorKind
from gcore_dashboard.core.usage import project_usage, summarize_series
from gcore_dashboard.key_storage.models import CredentialRecord
from gcore_dashboard.key_storage.store import KeyStore

T = TypeVar("T")
R = TypeVar("R")

ClientFactory = Callable[[str], GCoreClient]

logger = logging.getLogger(__name__)


@dataclass
class Outcome(Generic[T, R]):
    """Result of running one worker: a value or the exception it raised."""

    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_isolated(
    items: Iterable[T], worker: Callable[[T], Awaitable[R]]
) -> list[Outcome[T, R]]:
    """Run ``worker`` for every item concurrently and join on all of them.

    Each worker's exception is captured in its own ``Outcome``; a failing
    worker never cancels or fails its siblings. Outcomes are returned in input
    order.
    """

    async def run(item: T) -> Outcome[T, R]:
        try:
            return Outcome(item=item, value=await worker(item))
        except Exception as e:
            logger.debug(f"Worker failed for {item!r}: {e}")
            return Outcome(item=item, error=e)

    return list(await asyncio.gather(*(run(item) for item in items)))


def extract_account_email(account_info: Any) -> str | None:
    """First account e-mail in an ``/iam/users`` payload, if there is one."""
    candidates: Any = account_info
    if isinstance(account_info, dict):
        candidates = account_info.get("account") or account_info.get("results")
    if isinstance(candidates, list) and candidates:
        first = candidates[0]
        if isinstance(first, dict) and first.get("email"):
            return str(first["email"])
    return None


def error_summary(record: CredentialRecord, message: str) -> AccountSummary:
    return AccountSummary(
        id=record.id,
        name=record.name,
        status="error",
        traffic_used=0.0,
        traffic_limit=0.0,
        account_info=None,
        error=message,
    )


def summarize_totals(summaries: list[AccountSummary]) -> DashboardTotals:
    total_used = sum(summary.traffic_used or 0 for summary in summaries)
    total_limit = sum(summary.traffic_limit or 0 for summary in summaries)
    return DashboardTotals(
        total_accounts=len(summaries),
        active_accounts=sum(1 for s in summaries if s.status == "active"),
        error_accounts=sum(1 for s in summaries if s.status == "error"),
        total_traffic_used=total_used,
        total_traffic_limit=total_limit,
        usage_percentage=format_usage_percentage(total_used, total_limit),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountAggregator:
    """Builds account summaries and details from the stored credentials."""

    def __init__(
        self,
        store: KeyStore,
        client_factory: ClientFactory = GCoreClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the aggregator.

        Args:
            store: Source of credential records
            client_factory: Builds an API client for an API key
            clock: Source of "now", used for the detail date range
        """
        self.store = store
        self.client_factory = client_factory
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    async def load_accounts(self) -> list[AccountSummary]:
        """Summaries for every stored credential, highest traffic first."""
        records = self.store.list_keys()
        if not records:
            return []

        outcomes = await gather_isolated(records, self._summarize)

        summaries = []
        for outcome in outcomes:
            if outcome.ok and outcome.value is not None:
                summaries.append(outcome.value)
            else:
                self.logger.error(
                    f"Unexpected error loading account {outcome.item.id}: {outcome.error}"
                )
                summaries.append(error_summary(outcome.item, str(outcome.error)))

        errors = sum(1 for s in summaries if s.status == "error")
        self.logger.info(f"Loaded {len(summaries)} accounts ({errors} with errors)")
        return sorted(summaries, key=lambda s: s.traffic_used, reverse=True)

    async def _summarize(self, record: CredentialRecord) -> AccountSummary:
        client = self.client_factory(record.api_key)
        account_info, traffic = await asyncio.gather(
            client.get_account_info(), client.get_monthly_traffic()
        )

        for result in (account_info, traffic):
            if not result.ok:
                self.logger.warning(f"Account {record.id} failed: {result.message}")
                return error_summary(record, result.message or "Unknown error")

        monthly: MonthlyTraffic = traffic.value  # type: ignore[assignment]
        return AccountSummary(
            id=record.id,
            name=extract_account_email(account_info.value) or record.name,
            status="active",
            traffic_used=monthly.used or 0.0,
            traffic_limit=monthly.limit or 0.0,
            account_info=account_info.value,
            error=None,
        )

    async def load_account_detail(self, key_id: str) -> ApiResult[AccountDetail]:
        """Full detail for one credential.

        Detailed traffic is optional: when it fails the detail is still
        returned, without the series.
        """
        record = self.store.get(key_id)
        if record is None:
            return ApiResult.failure(ErrorKind.NOT_FOUND, "API key not found")

        client = self.client_factory(record.api_key)
        now = self.clock()
        account_info, traffic, detailed = await asyncio.gather(
            client.get_account_info(),
            client.get_monthly_traffic(),
            client.get_detailed_traffic(
                start_of_month(now).date().isoformat(), now.date().isoformat()
            ),
        )

        for result in (account_info, traffic):
            if not result.ok:
                return ApiResult.failure(
                    result.error_kind or ErrorKind.TRANSPORT, result.message or ""
                )

        if not detailed.ok:
            self.logger.info(f"Detailed traffic unavailable for {key_id}: {detailed.message}")

        monthly: MonthlyTraffic = traffic.value  # type: ignore[assignment]
        used = monthly.used or 0.0
        limit = monthly.limit or 0.0
        detailed_value = detailed.value if detailed.ok else None

        return ApiResult.success(
            AccountDetail(
                id=record.id,
                name=record.name,
                masked_api_key=mask_api_key(record.api_key),
                created_at=record.created_at,
                updated_at=record.updated_at,
                is_active=record.is_active,
                account_info=account_info.value,
                traffic_used=used,
                traffic_limit=limit,
                usage_percentage=format_usage_percentage(used, limit),
                projection=project_usage(used, limit, now),
                detailed_traffic=detailed_value,
                traffic_series=summarize_series(detailed_value)
                if detailed_value is not None
                else None,
            )
        )
