"""API key and account name validation utilities."""

import logging
import re
from typing import Any


class APIKeyValidator:
    """Checks submitted credentials before they are tested against the API.

    GCore keys have no published format, so only obvious copy-paste problems
    are rejected here. Whether a key actually works is decided by
    ``GCoreClient.test_connection``.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self.pattern = re.compile(r"^[\x21-\x7e]+$")
        self.min_length = 8
        self.max_name_length = 100

    def is_valid_format(self, api_key: Any) -> bool:
        """Check if an API key has a plausible format.

        Args:
            api_key: The API key to validate

        Returns:
            True if the key format is acceptable, False otherwise
        """
        if not api_key or not isinstance(api_key, str):
            return False

        if api_key != api_key.strip():
            return False

        if len(api_key) < self.min_length:
            return False

        return self.pattern.match(api_key) is not None

    def validate_api_key(self, api_key: Any) -> tuple[bool, str | None]:
        """Validate an API key.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not api_key or not isinstance(api_key, str):
            return False, "API key is required"

        api_key = api_key.strip()

        if len(api_key) == 0:
            return False, "API key is required"

        if any(char in api_key for char in ["\n", "\r", "\t"]):
            return False, "API key contains invalid characters"

        if len(api_key) < self.min_length:
            return False, f"API key is too short (minimum {self.min_length} characters)"

        if not self.pattern.match(api_key):
            return False, "API key contains spaces or non-printable characters"

        return True, None

    def validate_name(self, name: Any) -> tuple[bool, str | None]:
        """Validate an account display name."""
        if not name or not isinstance(name, str) or not name.strip():
            return False, "Account name is required"

        if len(name.strip()) > self.max_name_length:
            return False, f"Account name is too long (maximum {self.max_name_length} characters)"

        return True, None

    def check_common_issues(self, api_key: str) -> list[str]:
        """Check for common API key issues.

        Returns:
            List of identified issues
        """
        issues = []

        if not api_key:
            issues.append("API key is empty")
            return issues

        if (api_key.startswith('"') and api_key.endswith('"')) or (
            api_key.startswith("'") and api_key.endswith("'")
        ):
            issues.append("API key appears to have quotes around it")

        if api_key.lower().startswith(("apikey ", "bearer ")):
            issues.append("API key includes an authorization scheme prefix")

        placeholder_patterns = [
            "your_api_key_here",
            "placeholder",
            "example",
            "xxxxxxxx",
        ]

        api_key_lower = api_key.lower()
        for pattern in placeholder_patterns:
            if pattern in api_key_lower:
                issues.append("API key appears to be a placeholder or example")
                break

        return issues

    def validate_for_storage(
        self, name: str, api_key: str
    ) -> tuple[bool, list[str], list[str]]:
        """Validate a name and key pair submitted for storage.

        Both values are checked after stripping surrounding whitespace, the
        way the submission form trims them.

        Returns:
            Tuple of (is_valid, warnings, errors)
        """
        errors: list[str] = []
        warnings: list[str] = []

        name_ok, name_error = self.validate_name(name)
        if not name_ok:
            errors.append(name_error or "Invalid account name")

        key_ok, key_error = self.validate_api_key(api_key)
        if not key_ok:
            errors.append(key_error or "Invalid API key format")

        if errors:
            return False, warnings, errors

        warnings.extend(self.check_common_issues(api_key.strip()))
        return True, warnings, errors
