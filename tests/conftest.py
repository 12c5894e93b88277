"""Global pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
import respx

from gcore_dashboard.core.gcore import GCoreClient
from gcore_dashboard.key_storage.store import InMemoryKeyStore

# Import shared fixtures
from tests.fixtures.env_helpers import data_dir, empty_env
from tests.fixtures.http_helpers import common_http_errors, http_mock_helpers
from tests.fixtures.mock_clients import client_registry
from tests.fixtures.sample_data import (
    account_info_payload,
    detailed_traffic_payload,
    fixed_now,
    monthly_traffic_payload,
    sample_api_key,
)


@pytest.fixture
def respx_mock() -> Generator[Any, None, None]:
    """Provide respx mock for testing HTTP requests."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def gcore_client(sample_api_key: str, fixed_now: Any) -> GCoreClient:
    """GCore client with a fixed clock."""
    return GCoreClient(sample_api_key, clock=lambda: fixed_now)


@pytest.fixture
def memory_store() -> InMemoryKeyStore:
    """Empty in-memory key store."""
    return InMemoryKeyStore()
