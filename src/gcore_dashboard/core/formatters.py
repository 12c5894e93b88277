"""Formatting helpers for traffic figures, dates and usage ratios."""

import math
from datetime import datetime
from typing import Any

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB"]
BYTE_BASE = 1000


def format_bytes(num_bytes: Any, decimals: int = 2) -> str:
    """Format a byte count using base-1000 units.

    Args:
        num_bytes: Byte count; zero, negative or non-numeric input yields "0 Bytes"
        decimals: Maximum number of decimals, trailing zeros are dropped

    Returns:
        A string such as "1.5 MB"
    """
    try:
        value = float(num_bytes)
    except (TypeError, ValueError):
        return "0 Bytes"
    if not math.isfinite(value) or value <= 0:
        return "0 Bytes"

    decimals = max(decimals, 0)
    index = min(int(math.floor(math.log(value, BYTE_BASE))), len(BYTE_UNITS) - 1)
    index = max(index, 0)
    scaled = round(value / BYTE_BASE**index, decimals)

    # rounding can carry into the next unit, e.g. 999.999 KB -> 1000 KB
    if scaled >= BYTE_BASE and index < len(BYTE_UNITS) - 1:
        index += 1
        scaled = round(value / BYTE_BASE**index, decimals)

    text = f"{scaled:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[index]}"


def format_date(date_string: str | None) -> str:
    """Format an ISO-8601 timestamp as e.g. "Jan 5, 2024, 09:30 AM".

    Unparseable input is returned unchanged; missing input yields "".
    """
    if not date_string:
        return ""
    try:
        parsed = datetime.fromisoformat(date_string.replace("Z", "+00:00"))
    except ValueError:
        return date_string
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}, {parsed.strftime('%I:%M %p')}"


def format_usage_percentage(used: Any, total: Any) -> int:
    """Integer percentage of ``used`` over ``total`` clamped to [0, 100].

    Returns 0 when ``total`` is zero, absent or not a number.
    """
    try:
        used_value = float(used or 0)
        total_value = float(total or 0)
    except (TypeError, ValueError):
        return 0
    if total_value <= 0:
        return 0
    # round half up
    percentage = math.floor(used_value / total_value * 100 + 0.5)
    return max(0, min(percentage, 100))


def truncate_text(text: str | None, max_length: int = 50) -> str:
    if not text:
        return ""
    return text[:max_length] + "..." if len(text) > max_length else text


def current_month_name(now: datetime | None = None) -> str:
    """Name of the current month, e.g. "May 2024"."""
    now = now or datetime.now()
    return now.strftime("%B %Y")


def mask_api_key(api_key: str | None, prefix: int = 16, suffix: int = 4) -> str:
    """Mask an API key for display, keeping the first and last few characters."""
    if not api_key:
        return ""
    if len(api_key) <= prefix + suffix:
        return api_key[: min(4, len(api_key))] + "..."
    return f"{api_key[:prefix]}...{api_key[-suffix:]}"
