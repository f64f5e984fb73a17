"""FastAPI exception hierarchy for the adapter API.

This module defines exception classes that map to HTTP status codes and
provide consistent error responses across the API.
"""

from fastapi import HTTPException, status

from crateadapter.exceptions import CrateAdapterError, get_http_status


class CrateAdapterAPIException(HTTPException):
    """Base API exception.

    All custom API exceptions should inherit from this class.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class BadRequestException(CrateAdapterAPIException):
    """Bad request (400).

    Raised when the request body cannot be decoded or translated.
    """

    def __init__(self, detail: str = "Bad request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class PayloadTooLargeException(CrateAdapterAPIException):
    """Payload too large (413)."""

    def __init__(self, detail: str = "Request body too large"):
        super().__init__(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=detail,
        )


class InternalServerException(CrateAdapterAPIException):
    """Internal server error (500).

    Raised when CrateDB fails or answers with something unusable.
    """

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )


def to_api_exception(error: CrateAdapterError) -> CrateAdapterAPIException:
    """Wrap a domain error in the API exception for its status code."""
    status_code = get_http_status(error)
    if status_code == status.HTTP_400_BAD_REQUEST:
        return BadRequestException(error.message)
    return InternalServerException(error.message)
