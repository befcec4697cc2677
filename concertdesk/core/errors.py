"""Error codes raised across the ConcertDesk engines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Error codes."""

    API_REJECTED = "API_REJECTED"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    PRICING_PRECONDITION = "PRICING_PRECONDITION"


@dataclass(frozen=True)
class ConcertDeskError(Exception):
    """Base error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ApiError(ConcertDeskError):
    """Raised by the marketplace client when a call fails.

    ``status`` is None when the request never produced an HTTP response
    (connection refused, timeout, undecodable body).
    """

    def __init__(self, message: str, status: int | None = None, details: dict | None = None) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_FAILURE if status is None else ErrorCode.API_REJECTED,
            message=message,
        )
        self.status = status
        self.details = details or {}


class PricingError(ConcertDeskError, ValueError):
    """Raised when the calculator is called with an invalid quantity or price."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.PRICING_PRECONDITION, message=message)


def describe_error(error: BaseException) -> str:
    """User-facing text for an error caught at an async boundary."""
    if isinstance(error, ConcertDeskError):
        return error.message
    return str(error) or error.__class__.__name__
