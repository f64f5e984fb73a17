"""HTTP transport to the CrateDB ``_sql`` endpoint."""

from decimal import Decimal
from typing import Any

import httpx
import structlog

from crateadapter.exceptions import MalformedResultError, StoreError
from crateadapter.translation.models import BulkStatement, ResultTable, SQLStatement

logger = structlog.get_logger(__name__)

# CrateDB reports a failed row of a bulk operation with this row count.
BULK_ROW_FAILED = -2


def _error_details(response: httpx.Response) -> str:
    """Pull the CrateDB error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text


class CrateTransport:
    """Executes statements against CrateDB over HTTP.

    Each call is a single POST; nothing is retried. The caller owns the
    ``httpx.AsyncClient`` and with it the timeout and connection pool.

    Example:
        async with httpx.AsyncClient(timeout=30.0) as client:
            transport = CrateTransport(client, "http://localhost:4200/_sql")
            table = await transport.execute(statement)
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self.client = client
        self.url = url

    async def _post(self, operation: str, payload: dict[str, Any]) -> dict[str, Any]:
        logger.debug(
            "crate_request",
            operation=operation,
            stmt=payload["stmt"],
            bulk_rows=len(payload.get("bulk_args", ())),
        )

        try:
            response = await self.client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.error("crate_request_failed", operation=operation, error=str(e))
            raise StoreError(operation, f"{type(e).__name__}: {e}") from e

        if response.status_code != httpx.codes.OK:
            details = _error_details(response)
            logger.error(
                "crate_request_rejected",
                operation=operation,
                status_code=response.status_code,
                body=details,
            )
            raise StoreError(operation, details, status_code=response.status_code)

        try:
            body = response.json(parse_float=Decimal)
        except ValueError as e:
            raise MalformedResultError(
                f"response is not valid JSON: {e}", operation=operation
            ) from e
        if not isinstance(body, dict):
            raise MalformedResultError("response is not a JSON object", operation=operation)
        return body

    async def execute(self, statement: SQLStatement) -> ResultTable:
        """Run a query and return its result table.

        Floating point numbers in the response are decoded as ``Decimal`` and
        integers as ``int``, so no digits are lost.

        Raises:
            StoreError: On transport errors or a non-200 status
            MalformedResultError: If the response is not a result table
        """
        body = await self._post("select", statement.to_payload())
        return ResultTable.from_response(body)

    async def execute_bulk(self, statement: BulkStatement) -> int:
        """Run a bulk statement and return the number of rows written.

        Raises:
            StoreError: On transport errors, a non-200 status, or any row
                reported as failed
        """
        body = await self._post("insert", statement.to_payload())

        results = body.get("results") or []
        failed = sum(
            1
            for result in results
            if isinstance(result, dict) and result.get("rowcount") == BULK_ROW_FAILED
        )
        if failed:
            logger.error(
                "crate_bulk_rows_failed", failed=failed, rows=statement.row_count
            )
            raise StoreError(
                "insert", f"{failed} of {statement.row_count} rows were not written"
            )

        return sum(
            result.get("rowcount", 0)
            for result in results
            if isinstance(result, dict) and isinstance(result.get("rowcount"), int)
        )
