"""
Domain-specific exceptions for the Hoopers API.

Pagination errors fall into two groups:

- Recoverable request problems (bad cursor, unknown sort field) are handled
  inside the paginator and never reach a client.
- Entity-source failures (timeout, unavailable store) propagate so a failed
  fetch is never mistaken for the end of a collection.

Errors that do cross the API boundary are mapped to HTTP status codes here.
"""

from typing import Any


class HoopersError(Exception):
    """Base exception for all Hoopers domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(HoopersError):
    """
    Raised when a requested resource does not exist.

    HTTP Status: 404 Not Found
    """

    pass


class PaginationError(HoopersError):
    """Base class for keyset pagination errors."""

    pass


class CursorDecodeError(PaginationError):
    """
    Raised when a cursor token is malformed, truncated or foreign.

    Recovered locally: the paginator treats the request as a first page.
    """

    pass


class InvalidSortFieldError(PaginationError):
    """
    Raised when a sort field name is not in the entity's sort table.

    Recovered locally: the paginator substitutes the default field.
    """

    pass


class SourceUnavailableError(PaginationError):
    """
    Raised when the entity source fails while fetching a page.

    HTTP Status: 503 Service Unavailable
    """

    public_message = "The data source is temporarily unavailable"


class SourceTimeoutError(SourceUnavailableError):
    """
    Raised when the entity source does not answer before the fetch deadline.

    HTTP Status: 504 Gateway Timeout
    """

    public_message = "The data source did not respond in time"


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    NotFoundError: 404,
    CursorDecodeError: 400,
    InvalidSortFieldError: 400,
    SourceUnavailableError: 503,
    SourceTimeoutError: 504,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
