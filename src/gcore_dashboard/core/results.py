"""Uniform result values returned by remote-call wrappers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Categories of expected failure."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    NOT_FOUND = "not_found"


class GCoreAPIError(Exception):
    """Raised by ``ApiResult.unwrap`` when the result holds a failure."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Either a value (``ok``) or an error kind with a human-readable message."""

    ok: bool
    value: T | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, value: T) -> "ApiResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ApiResult[T]":
        return cls(ok=False, error_kind=kind, message=message)

    def with_context(self, context: str) -> "ApiResult[T]":
        """Prefix the failure message with operation context."""
        if self.ok:
            return self
        return ApiResult(
            ok=False,
            error_kind=self.error_kind,
            message=f"{context}: {self.message}",
        )

    def unwrap(self) -> T:
        """Return the value or raise ``GCoreAPIError``."""
        if not self.ok:
            raise GCoreAPIError(
                self.error_kind or ErrorKind.TRANSPORT, self.message or "Unknown error"
            )
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a credential check. ``data`` on success, ``error`` otherwise."""

    success: bool
    data: Any = None
    error: str | None = None
