"""Translation of remote write batches into CrateDB bulk inserts."""

from typing import Any, Sequence

import structlog

from crateadapter.translation.escaping import escape_label_name
from crateadapter.translation.models import (
    TIMESTAMP_COLUMN,
    VALUE_COLUMN,
    VALUE_RAW_COLUMN,
    BulkStatement,
    TimeSeries,
)
from crateadapter.translation.observer import NullObserver, TranslationObserver
from crateadapter.translation.query import DEFAULT_TABLE
from crateadapter.translation.values import float_to_raw, format_sample_value

logger = structlog.get_logger(__name__)

_FIXED_COLUMNS = f'"{VALUE_COLUMN}", "{VALUE_RAW_COLUMN}", "{TIMESTAMP_COLUMN}"'


class WriteBuilder:
    """Builds one bulk INSERT for a whole remote write batch.

    The statement lists a column for every label name used anywhere in the
    batch, in sorted order, followed by ``value``, ``valueRaw`` and
    ``timestamp``. Each sample becomes one argument row; labels a series
    does not carry, or carries with an empty value, are sent as NULL.

    Example:
        builder = WriteBuilder(table="metrics")
        statement = builder.build(series)
        await transport.execute_bulk(statement)
    """

    def __init__(
        self,
        table: str = DEFAULT_TABLE,
        observer: TranslationObserver | None = None,
    ) -> None:
        self.table = table
        self.observer = observer or NullObserver()

    @staticmethod
    def label_names(series: Sequence[TimeSeries]) -> list[str]:
        """Sorted union of the label names used in the batch."""
        names: set[str] = set()
        for ts in series:
            names.update(ts.labels)
        return sorted(names)

    def statement_text(self, label_names: Sequence[str]) -> str:
        columns = [escape_label_name(name) for name in label_names]
        columns.append(_FIXED_COLUMNS)
        placeholders = ", ".join(["?"] * (len(label_names) + 3))
        return f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})"

    def build(self, series: Sequence[TimeSeries]) -> BulkStatement:
        """Build the bulk INSERT for a batch.

        Args:
            series: Time series as received from the remote write request

        Returns:
            BulkStatement: Statement with one argument row per sample
        """
        label_names = self.label_names(series)
        bulk_args: list[list[Any]] = []

        for ts in series:
            label_args = [ts.labels.get(name) or None for name in label_names]
            for sample in ts.samples:
                bulk_args.append(
                    [
                        *label_args,
                        format_sample_value(sample.value),
                        float_to_raw(sample.value),
                        int(sample.timestamp_ms),
                    ]
                )

        statement = BulkStatement(
            text=self.statement_text(label_names), bulk_args=bulk_args
        )

        logger.debug(
            "write_translated",
            series=len(series),
            samples=statement.row_count,
            label_columns=len(label_names),
        )
        self.observer.on_write_translated(series, statement)
        return statement
