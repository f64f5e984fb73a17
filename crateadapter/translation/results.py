"""Reassembly of time series from flat CrateDB result rows."""

from decimal import Decimal
from typing import Any, Sequence

import structlog

from crateadapter.exceptions import MalformedResultError
from crateadapter.translation.models import (
    ColumnKind,
    ResultColumn,
    ResultTable,
    Sample,
    SeriesKey,
    TimeSeries,
    TIMESTAMP_COLUMN,
    VALUE_RAW_COLUMN,
)
from crateadapter.translation.observer import NullObserver, TranslationObserver
from crateadapter.translation.values import raw_to_float

logger = structlog.get_logger(__name__)


def _as_int(cell: Any, column: str, row_index: int) -> int:
    # Cells must arrive as exact JSON integers. Binary floats would lose
    # bits of valueRaw, so they are rejected rather than rounded.
    if isinstance(cell, int) and not isinstance(cell, bool):
        return cell
    if isinstance(cell, Decimal) and cell.is_finite() and cell == cell.to_integral_value():
        return int(cell)
    raise MalformedResultError(
        f"expected an integer in column {column!r}, got {cell!r}",
        column=column,
        row=row_index,
    )


class ResultAssembler:
    """Groups result rows into time series.

    Every row is one sample of one series. Label columns with a non-null
    value make up the series' label set; rows with equal label sets belong to
    the same series. Rows are expected in timestamp order, which
    ``query_to_sql`` requests, so samples are appended without sorting.

    Example:
        assembler = ResultAssembler()
        series = assembler.assemble(ResultTable(columns, rows))
    """

    def __init__(self, observer: TranslationObserver | None = None) -> None:
        self.observer = observer or NullObserver()

    @staticmethod
    def _index_columns(table: ResultTable) -> tuple[list[ResultColumn], int, int]:
        columns = table.tagged_columns()
        value_raw_index = timestamp_index = None
        for index, column in enumerate(columns):
            if column.kind is ColumnKind.VALUE_RAW:
                value_raw_index = index
            elif column.kind is ColumnKind.TIMESTAMP:
                timestamp_index = index

        missing = [
            name
            for name, index in (
                (VALUE_RAW_COLUMN, value_raw_index),
                (TIMESTAMP_COLUMN, timestamp_index),
            )
            if index is None
        ]
        if missing:
            raise MalformedResultError(
                f"missing required columns: {', '.join(missing)}",
                columns=table.columns,
            )
        return columns, value_raw_index, timestamp_index

    def assemble(self, table: ResultTable) -> list[TimeSeries]:
        """Build time series from a result table.

        Args:
            table: Columns and rows returned by the store

        Returns:
            list[TimeSeries]: One entry per distinct label set, ordered by
                canonical label-set key. Labels inside each series are in
                sorted order.

        Raises:
            MalformedResultError: If a required column is missing, a row has
                the wrong width, or a cell has the wrong type
        """
        columns, value_raw_index, timestamp_index = self._index_columns(table)
        label_columns = [
            (index, column.label_name)
            for index, column in enumerate(columns)
            if column.kind is ColumnKind.LABEL
        ]

        series_by_key: dict[SeriesKey, TimeSeries] = {}
        for row_index, row in enumerate(table.rows):
            if len(row) != len(columns):
                raise MalformedResultError(
                    f"row {row_index} has {len(row)} values for {len(columns)} columns",
                    row=row_index,
                )

            labels = {}
            for index, label_name in label_columns:
                cell = row[index]
                if cell is None:
                    continue
                if not isinstance(cell, str):
                    raise MalformedResultError(
                        f"expected a string in label column {columns[index].name!r}, got {cell!r}",
                        column=columns[index].name,
                        row=row_index,
                    )
                labels[label_name] = cell

            raw = _as_int(row[value_raw_index], VALUE_RAW_COLUMN, row_index)
            timestamp = _as_int(row[timestamp_index], TIMESTAMP_COLUMN, row_index)
            try:
                value = raw_to_float(raw)
            except ValueError as e:
                raise MalformedResultError(str(e), column=VALUE_RAW_COLUMN, row=row_index) from e

            key = SeriesKey.from_labels(labels)
            series = series_by_key.get(key)
            if series is None:
                series = TimeSeries(labels=key.to_dict())
                series_by_key[key] = series
            series.samples.append(Sample(timestamp_ms=timestamp, value=value))

        result = [series_by_key[key] for key in sorted(series_by_key)]

        logger.debug("result_assembled", rows=len(table.rows), series=len(result))
        self.observer.on_assembly_completed(result)
        return result


def response_to_timeseries(
    table: ResultTable, observer: TranslationObserver | None = None
) -> Sequence[TimeSeries]:
    """Shortcut for ``ResultAssembler(observer).assemble(table)``."""
    return ResultAssembler(observer).assemble(table)
