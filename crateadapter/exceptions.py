"""Custom exceptions for the Crate remote storage adapter."""

from typing import Any


class CrateAdapterError(Exception):
    """Base exception for all adapter errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(CrateAdapterError):
    """Configuration-related errors."""

    pass


class TranslationError(CrateAdapterError):
    """Base class for errors raised while translating a remote request to SQL."""

    pass


class InvalidMatcherError(TranslationError):
    """A label matcher carries a regular expression that does not compile."""

    def __init__(self, name: str, pattern: str, details: str) -> None:
        super().__init__(
            f"Invalid regular expression for label {name!r}: {details}",
            name=name,
            pattern=pattern,
            details=details,
        )


class MultipleQueriesError(TranslationError):
    """A remote read request did not carry exactly one query."""

    def __init__(self, count: int) -> None:
        super().__init__(
            f"Can only handle one query per read request, got {count}",
            count=count,
        )


class ProtocolDecodeError(CrateAdapterError):
    """Request body could not be decompressed or parsed."""

    def __init__(self, message_type: str, details: str) -> None:
        super().__init__(
            f"Failed to decode {message_type}: {details}",
            message_type=message_type,
            details=details,
        )


class StoreError(CrateAdapterError):
    """The SQL store could not be reached or did not report success."""

    def __init__(
        self,
        operation: str,
        details: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"CrateDB {operation} failed: {details}",
            operation=operation,
            details=details,
            status_code=status_code,
        )


class MalformedResultError(CrateAdapterError):
    """The SQL store answered with a result table of an unexpected shape."""

    def __init__(self, details: str, **context: Any) -> None:
        super().__init__(f"Malformed result from CrateDB: {details}", **context)


def get_http_status(error: Exception) -> int:
    """Map exception to HTTP status code."""
    status_map = {
        InvalidMatcherError: 400,
        MultipleQueriesError: 400,
        ProtocolDecodeError: 400,
        TranslationError: 400,
        StoreError: 500,
        MalformedResultError: 500,
        ConfigurationError: 500,
    }

    for exc_type, status in status_map.items():
        if isinstance(error, exc_type):
            return status

    return 500
