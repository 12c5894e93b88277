"""Command line interface for managing GCore API keys and viewing usage."""

import argparse
import asyncio
import getpass

from gcore_dashboard.core.aggregator import (
    AccountAggregator,
    ClientFactory,
    summarize_totals,
)
from gcore_dashboard.core.formatters import (
    current_month_name,
    format_bytes,
    format_date,
    format_usage_percentage,
    mask_api_key,
    truncate_text,
)
from gcore_dashboard.core.gcore import GCoreClient
from gcore_dashboard.core.models import AccountDetail, AccountSummary
from gcore_dashboard.key_storage.json_store import create_key_store
from gcore_dashboard.key_storage.store import KeyStore, KeyStoreError
from gcore_dashboard.key_storage.validation import APIKeyValidator
from gcore_dashboard.utils.env import load_env

BYTES_PER_GB = 1e9
TREND_LABELS = {"up": "📈 Increasing", "down": "📉 Decreasing", "stable": "➡️ Stable"}


def gb(value: float) -> str:
    """Format a GB figure with the byte formatter."""
    return format_bytes(value * BYTES_PER_GB)


def prompt_for_api_key() -> str | None:
    """Prompt for an API key without echoing it.

    Returns:
        The API key, or None if the user cancelled or entered nothing
    """
    try:
        api_key = getpass.getpass("Enter your GCore API key: ").strip()
    except (KeyboardInterrupt, EOFError):
        print("\n❌ Operation cancelled by user.")
        return None
    if not api_key:
        print("❌ No API key provided.")
        return None
    return api_key


def print_keys(store: KeyStore) -> None:
    records = store.list_keys()
    if not records:
        print("🔑 No API keys stored. Add one with: gcore-dashboard keys add --name NAME")
        return

    for record in records:
        state = "✅ Active" if record.is_active else "⭕ Inactive"
        print(f"{record.id}  {truncate_text(record.name, 30):<30}  {state}")
        print(f"    API Key: {mask_api_key(record.api_key)}")
        print(f"    Added: {format_date(record.created_at)}", end="")
        print(f"  Updated: {format_date(record.updated_at) if record.updated_at else 'Never'}")


async def add_key(
    store: KeyStore,
    name: str,
    api_key: str,
    skip_test: bool = False,
    client_factory: ClientFactory = GCoreClient,
) -> bool:
    """Validate, test and store a key. Returns True if it was stored."""
    validator = APIKeyValidator()
    is_valid, warnings, errors = validator.validate_for_storage(name, api_key)
    if not is_valid:
        for error in errors:
            print(f"❌ {error}")
        return False
    for warning in warnings:
        print(f"⚠️  {warning}")

    api_key = api_key.strip()
    if not skip_test:
        print("🔍 Testing API key...")
        result = await client_factory(api_key).test_connection()
        if not result.success:
            print(f"❌ API key test failed: {result.error}")
            return False

    record = store.add(name.strip(), api_key)
    print(f"✅ API key '{record.name}' saved with id {record.id}")
    return True


async def update_key(
    store: KeyStore,
    key_id: str,
    name: str | None,
    api_key: str | None,
    skip_test: bool = False,
    client_factory: ClientFactory = GCoreClient,
) -> bool:
    existing = store.get(key_id)
    if existing is None:
        print(f"❌ API key not found: {key_id}")
        return False

    validator = APIKeyValidator()
    is_valid, _, errors = validator.validate_for_storage(
        name if name is not None else existing.name,
        api_key if api_key is not None else existing.api_key,
    )
    if not is_valid:
        for error in errors:
            print(f"❌ {error}")
        return False

    updates: dict[str, str] = {}
    if name is not None:
        updates["name"] = name.strip()
    if api_key is not None:
        updates["api_key"] = api_key.strip()
        if not skip_test:
            result = await client_factory(updates["api_key"]).test_connection()
            if not result.success:
                print(f"❌ API key test failed: {result.error}")
                return False

    if not updates:
        print("Nothing to update.")
        return False

    store.update(key_id, updates)
    print(f"✅ API key {key_id} updated")
    return True


def print_dashboard(summaries: list[AccountSummary]) -> None:
    print(f"📊 Traffic usage for {current_month_name()}")
    if not summaries:
        print("🔑 No API keys found. Add your first API key to start monitoring.")
        return

    totals = summarize_totals(summaries)
    print(
        f"Accounts: {totals.total_accounts}  ✅ Active: {totals.active_accounts}  "
        f"❌ Errors: {totals.error_accounts}  📈 Total: {gb(totals.total_traffic_used)}"
    )
    print("━" * 60)
    for summary in summaries:
        if summary.status == "error":
            print(f"❌ {summary.name} ({summary.id})")
            print(f"    {summary.error}")
            continue
        percentage = format_usage_percentage(summary.traffic_used, summary.traffic_limit)
        print(f"✅ {summary.name} ({summary.id})")
        print(
            f"    {gb(summary.traffic_used)} of {gb(summary.traffic_limit)} limit "
            f"({percentage}%)"
        )


def print_account_detail(detail: AccountDetail) -> None:
    print(f"📋 {detail.name} ({detail.id})")
    print("━" * 60)
    print(
        f"Traffic: {gb(detail.traffic_used)} of {gb(detail.traffic_limit)} "
        f"({detail.usage_percentage}%)"
    )
    projection = detail.projection
    print(f"Daily average: {gb(projection.daily_average)}")
    print(f"Projected monthly: {gb(projection.projected_monthly)}")
    print(f"Days remaining: {projection.days_remaining}")
    if projection.remaining_quota is not None:
        print(f"Remaining quota: {projection.remaining_quota}%")
    else:
        print("Remaining quota: N/A")

    series = detail.traffic_series
    if series and series.daily:
        print(f"Peak day: {series.peak_day}")
        print(f"Trend: {TREND_LABELS[series.trend]}")
        print("Last 7 days:")
        for point in series.daily[-7:]:
            print(f"    {point.timestamp}  {format_bytes(point.bytes)}")
    else:
        print("📊 Traffic history unavailable")

    print("━" * 60)
    print(f"API Key: {detail.masked_api_key}")
    print(f"Status: {'✅ Active' if detail.is_active else '⭕ Inactive'}")
    print(f"Added: {format_date(detail.created_at)}")
    print(f"Last updated: {format_date(detail.updated_at) if detail.updated_at else 'Never'}")


async def async_main(args: argparse.Namespace) -> int:
    """Async entry point dispatching the parsed command."""
    from gcore_dashboard.config import create_client

    store = create_key_store(encrypt=not args.no_encryption)

    if args.command == "keys":
        if args.keys_command == "list":
            print_keys(store)
            return 0

        if args.keys_command == "add":
            api_key = args.key or prompt_for_api_key()
            if not api_key:
                return 1
            stored = await add_key(
                store, args.name, api_key, args.skip_test, create_client
            )
            return 0 if stored else 1

        if args.keys_command == "update":
            api_key = prompt_for_api_key() if args.prompt_key else args.key
            if args.prompt_key and not api_key:
                return 1
            ok = await update_key(
                store, args.id, args.name, api_key, args.skip_test, create_client
            )
            return 0 if ok else 1

        if args.keys_command == "remove":
            if not store.delete(args.id):
                print(f"❌ API key not found: {args.id}")
                return 1
            print(f"🗑️  API key {args.id} deleted")
            return 0

        if args.keys_command == "toggle":
            record = store.get(args.id)
            if record is None:
                print(f"❌ API key not found: {args.id}")
                return 1
            updated = store.update(args.id, {"is_active": not record.is_active})
            state = "activated" if updated and updated.is_active else "deactivated"
            print(f"✅ API key {args.id} {state}")
            return 0

        if args.keys_command == "test":
            api_key = args.key or prompt_for_api_key()
            if not api_key:
                return 1
            result = await create_client(api_key.strip()).test_connection()
            if result.success:
                print("✅ API key is valid")
                return 0
            print(f"❌ API key test failed: {result.error}")
            return 1

    aggregator = AccountAggregator(store, create_client)

    if args.command == "dashboard":
        print_dashboard(await aggregator.load_accounts())
        return 0

    if args.command == "account":
        result = await aggregator.load_account_detail(args.id)
        if not result.ok:
            print(f"❌ {result.message}")
            return 1
        print_account_detail(result.unwrap())
        return 0

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="GCore Dashboard - manage API keys and monitor CDN traffic usage"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-encryption",
        action="store_true",
        help="Store API keys in plain text instead of encrypting them",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    keys = subparsers.add_parser("keys", help="Manage stored API keys")
    keys_sub = keys.add_subparsers(dest="keys_command", required=True)

    keys_sub.add_parser("list", help="List stored API keys")

    add = keys_sub.add_parser("add", help="Add an API key")
    add.add_argument("--name", required=True, help="Account display name")
    add.add_argument("--key", help="API key (prompted for when omitted)")
    add.add_argument("--skip-test", action="store_true", help="Do not test the key first")

    update = keys_sub.add_parser("update", help="Edit a stored API key")
    update.add_argument("id", help="API key id")
    update.add_argument("--name", help="New display name")
    update.add_argument("--key", help="New API key")
    update.add_argument(
        "--prompt-key", action="store_true", help="Prompt for the new API key"
    )
    update.add_argument("--skip-test", action="store_true", help="Do not test the key first")

    remove = keys_sub.add_parser("remove", help="Delete a stored API key")
    remove.add_argument("id", help="API key id")

    toggle = keys_sub.add_parser("toggle", help="Activate or deactivate an API key")
    toggle.add_argument("id", help="API key id")

    test = keys_sub.add_parser("test", help="Test an API key against the GCore API")
    test.add_argument("--key", help="API key (prompted for when omitted)")

    subparsers.add_parser("dashboard", help="Show traffic usage for every account")

    account = subparsers.add_parser("account", help="Show details for one account")
    account.add_argument("id", help="API key id")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Synchronous entry point that runs the async main function."""
    load_env()
    from gcore_dashboard.config import configure_logging

    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        return asyncio.run(async_main(args))
    except KeyStoreError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
