"""Observability hooks for the translation pipeline.

The translation functions and the adapter report what they did through an
injected observer instead of touching process-wide metric objects. The
Prometheus-backed implementation lives in :mod:`crateadapter.metrics`.
"""

from typing import Protocol, Sequence, runtime_checkable

from crateadapter.translation.models import (
    BulkStatement,
    Query,
    SQLStatement,
    TimeSeries,
)


@runtime_checkable
class TranslationObserver(Protocol):
    """Receives events from the read and write paths.

    ``operation`` is either ``"read"`` or ``"write"``.
    """

    def on_query_translated(self, query: Query, statement: SQLStatement) -> None: ...

    def on_write_translated(
        self, series: Sequence[TimeSeries], statement: BulkStatement
    ) -> None: ...

    def on_store_call_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None: ...

    def on_assembly_completed(self, series: Sequence[TimeSeries]) -> None: ...

    def on_request_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None: ...


class NullObserver:
    """Observer that ignores every event."""

    def on_query_translated(self, query: Query, statement: SQLStatement) -> None:
        pass

    def on_write_translated(
        self, series: Sequence[TimeSeries], statement: BulkStatement
    ) -> None:
        pass

    def on_store_call_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None:
        pass

    def on_assembly_completed(self, series: Sequence[TimeSeries]) -> None:
        pass

    def on_request_completed(
        self, operation: str, duration_seconds: float, success: bool
    ) -> None:
        pass
