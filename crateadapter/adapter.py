"""Remote read and write handling against CrateDB.

``CrateAdapter`` ties the pure translation functions to the store
transport. One remote read or write maps to exactly one SQL statement.
"""

import time
from typing import Protocol, Sequence

import structlog

from crateadapter.translation.models import (
    BulkStatement,
    Query,
    ResultTable,
    SQLStatement,
    TimeSeries,
)
from crateadapter.translation.observer import NullObserver, TranslationObserver
from crateadapter.translation.query import DEFAULT_TABLE, query_to_sql
from crateadapter.translation.results import ResultAssembler
from crateadapter.translation.writes import WriteBuilder

logger = structlog.get_logger(__name__)


class StoreTransport(Protocol):
    """What the adapter needs from the store."""

    async def execute(self, statement: SQLStatement) -> ResultTable: ...

    async def execute_bulk(self, statement: BulkStatement) -> int: ...


class CrateAdapter:
    """Serves remote read queries and remote write batches from CrateDB.

    Errors from translation, the transport and result assembly propagate
    to the caller unchanged; nothing is retried and no partial result is
    returned.

    Example:
        adapter = CrateAdapter(transport, table="metrics", observer=observer)
        series = await adapter.read(query)
        await adapter.write(series)
    """

    def __init__(
        self,
        transport: StoreTransport,
        table: str = DEFAULT_TABLE,
        observer: TranslationObserver | None = None,
    ) -> None:
        self.transport = transport
        self.table = table
        self.observer = observer or NullObserver()
        self._assembler = ResultAssembler(self.observer)
        self._write_builder = WriteBuilder(table, self.observer)

    async def read(self, query: Query) -> list[TimeSeries]:
        """Run a remote read query.

        Raises:
            InvalidMatcherError: If a matcher regex does not compile
            StoreError: If CrateDB fails
            MalformedResultError: If the result cannot be turned into series
        """
        statement = query_to_sql(query, self.table, self.observer)

        start = time.perf_counter()
        success = False
        try:
            table = await self.transport.execute(statement)
            success = True
        finally:
            self.observer.on_store_call_completed(
                "read", time.perf_counter() - start, success
            )

        series = self._assembler.assemble(table)
        logger.debug("read_completed", rows=len(table.rows), series=len(series))
        return series

    async def write(self, series: Sequence[TimeSeries]) -> int:
        """Store a remote write batch.

        A batch without samples is not sent to the store.

        Returns:
            int: Number of samples written

        Raises:
            StoreError: If CrateDB fails
        """
        statement = self._write_builder.build(series)
        if not statement.bulk_args:
            logger.debug("write_skipped_empty", series=len(series))
            return 0

        start = time.perf_counter()
        success = False
        try:
            await self.transport.execute_bulk(statement)
            success = True
        finally:
            self.observer.on_store_call_completed(
                "write", time.perf_counter() - start, success
            )

        logger.debug("write_completed", series=len(series), samples=statement.row_count)
        return statement.row_count
