"""
Configuration constants for the GCore dashboard.

Values are read from the environment (after ``load_env`` has pulled in any
``.env`` file) when this module is first imported.
"""

import logging
import os
import platform
from pathlib import Path

from gcore_dashboard.core.gcore import GCoreClient
from gcore_dashboard.utils.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    GCORE_API_BASE,
    KEYS_FILE_NAME,
)

APP_NAME = "gcore-dashboard"

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("SERVER_PORT", "8080"))

GCORE_API_BASE_URL = os.getenv("GCORE_API_BASE_URL", GCORE_API_BASE).rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("GCORE_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_user_data_dir(app_name: str = APP_NAME) -> Path:
    """Get platform-appropriate user data directory.

    ``GCORE_DASHBOARD_DATA_DIR`` overrides the platform default.
    """
    override = os.environ.get("GCORE_DASHBOARD_DATA_DIR")
    if override:
        return Path(override)

    system = platform.system()

    if system == "Darwin":  # macOS
        base_dir = Path.home() / "Library" / "Application Support"
    elif system == "Windows":
        base_dir = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:  # Linux and others
        base_dir = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base_dir / app_name


def get_keys_file() -> Path:
    """Location of the persisted credential list."""
    return get_user_data_dir() / KEYS_FILE_NAME


def create_client(api_key: str) -> GCoreClient:
    """GCore client pointed at the configured base URL and timeout."""
    return GCoreClient(api_key, base_url=GCORE_API_BASE_URL, timeout=REQUEST_TIMEOUT)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for the server and CLI entry points."""
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING if not verbose else logging.DEBUG)
