"""Exceptions raised by event sources and request construction."""

from __future__ import annotations

_STATUS_MESSAGES: dict[int, str] = {
    401: "Authentication required",
    403: "Access forbidden",
    404: "Events endpoint not found",
    429: "Too many requests. Please try again later.",
    500: "Server error. Please try again later.",
}


class EventFeedError(Exception):
    """Base class for all eventfeed errors."""


class NetworkError(EventFeedError):
    """The event source could not be reached or answered with a failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, detail: str | None = None) -> NetworkError:
        """Build an error for a non-success HTTP status."""
        message = _STATUS_MESSAGES.get(status_code, f"HTTP {status_code}")
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status_code=status_code)


class MalformedResponseError(NetworkError):
    """The event source answered with a body that breaks the response contract."""


class QueryValidationError(EventFeedError):
    """Request parameters were rejected before any request was issued."""
