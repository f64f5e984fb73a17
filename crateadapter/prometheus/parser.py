"""Checks run on remote storage requests before the body is decoded."""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# header -> substring its value must contain when present
_CONTENT_HEADERS = {
    "content-type": "application/x-protobuf",
    "content-encoding": "snappy",
}

# Newer protocol versions are still decoded, only logged.
_VERSION_HEADERS = {
    "x-prometheus-remote-write-version": ("0.1.0",),
    "x-prometheus-remote-read-version": ("0.1.0",),
}


class PrometheusParser:
    """Validator for Prometheus remote read and write HTTP requests.

    Prometheus sends ``Content-Type: application/x-protobuf`` and
    ``Content-Encoding: snappy`` with both request kinds. A request that
    omits these headers is accepted, one that names something else is not.

    Example:
        is_valid, error = PrometheusParser.validate_headers(headers)
        if not is_valid:
            raise BadRequestException(error)
    """

    @staticmethod
    def validate_headers(headers: Dict[str, str]) -> tuple[bool, Optional[str]]:
        """Check content headers and log unknown protocol versions.

        Args:
            headers: HTTP request headers, any case

        Returns:
            tuple: (is_valid, error_message), error_message is None when valid
        """
        lowered = {k.lower(): v for k, v in headers.items()}

        for name, expected in _CONTENT_HEADERS.items():
            value = lowered.get(name, "")
            if value and expected not in value.lower():
                return False, f"Invalid {name.title()}: expected '{expected}', got '{value}'"

        for name, known in _VERSION_HEADERS.items():
            version = lowered.get(name)
            if version and version not in known:
                logger.warning(
                    f"Unsupported {name}: {version}, continuing (known: {', '.join(known)})"
                )

        return True, None

    @staticmethod
    def validate_request_size(
        body_size: int, max_size: int = 32 * 1024 * 1024
    ) -> tuple[bool, Optional[str]]:
        """Reject empty bodies and bodies above ``max_size`` bytes."""
        if body_size <= 0:
            return False, "Request body is empty"

        if body_size > max_size:
            return (
                False,
                f"Request body too large: {body_size} bytes (max: {max_size} bytes)",
            )

        return True, None
