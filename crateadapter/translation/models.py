"""Value types flowing through the read and write translation pipelines."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Sequence

from crateadapter.exceptions import MalformedResultError

LABEL_COLUMN_PREFIX = "l"

VALUE_COLUMN = "value"
VALUE_RAW_COLUMN = "valueRaw"
TIMESTAMP_COLUMN = "timestamp"


class MatchType(IntEnum):
    """Label matcher comparison, numbered as in the remote read protocol."""

    EQUAL = 0
    NOT_EQUAL = 1
    REGEX_MATCH = 2
    REGEX_NO_MATCH = 3


@dataclass(frozen=True)
class LabelMatcher:
    """Filter on a single label.

    An empty ``value`` is equivalent to the label being absent.
    """

    name: str
    value: str
    match_type: MatchType = MatchType.EQUAL


@dataclass
class Query:
    """A remote read query: matchers plus an inclusive time range in milliseconds."""

    matchers: list[LabelMatcher]
    start_timestamp_ms: int
    end_timestamp_ms: int


@dataclass(frozen=True)
class Sample:
    """One observation. ``value`` may be NaN or +/-Inf."""

    timestamp_ms: int
    value: float


@dataclass(frozen=True, order=True)
class SeriesKey:
    """Canonical, order-independent identity of a label set.

    Holds the ``(name, value)`` pairs sorted by name, so two label mappings
    with the same content always produce equal, equally ordered keys.
    """

    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_labels(cls, labels: Mapping[str, str]) -> "SeriesKey":
        """Build the key for a label mapping."""
        return cls(tuple(sorted(labels.items())))

    def to_dict(self) -> dict[str, str]:
        """Return the labels as a dict with keys in sorted order."""
        return dict(self.pairs)

    def __str__(self) -> str:
        inner = ", ".join(f'{name}="{value}"' for name, value in self.pairs)
        return "{" + inner + "}"


@dataclass
class TimeSeries:
    """A label set plus its samples in timestamp order."""

    labels: dict[str, str] = field(default_factory=dict)
    samples: list[Sample] = field(default_factory=list)

    @property
    def key(self) -> SeriesKey:
        return SeriesKey.from_labels(self.labels)


@dataclass(frozen=True)
class SQLStatement:
    """A single statement with positional arguments."""

    text: str
    args: tuple[Any, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """Request body for the CrateDB ``_sql`` endpoint."""
        payload: dict[str, Any] = {"stmt": self.text}
        if self.args:
            payload["args"] = list(self.args)
        return payload


@dataclass(frozen=True)
class BulkStatement:
    """A statement executed once per argument row."""

    text: str
    bulk_args: list[list[Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.bulk_args)

    def to_payload(self) -> dict[str, Any]:
        """Request body for the CrateDB ``_sql`` endpoint."""
        return {"stmt": self.text, "bulk_args": self.bulk_args}


class ColumnKind(Enum):
    """Role of a column in a result table."""

    LABEL = "label"
    VALUE = "value"
    VALUE_RAW = "value_raw"
    TIMESTAMP = "timestamp"
    OTHER = "other"


@dataclass(frozen=True)
class ResultColumn:
    """A result column tagged with its role.

    ``label_name`` is set only for label columns and holds the label name
    with the reserved prefix removed.
    """

    name: str
    kind: ColumnKind
    label_name: str | None = None


_FIXED_COLUMNS = {
    VALUE_COLUMN: ColumnKind.VALUE,
    VALUE_RAW_COLUMN: ColumnKind.VALUE_RAW,
    TIMESTAMP_COLUMN: ColumnKind.TIMESTAMP,
}


def classify_column(name: str) -> ResultColumn:
    """Tag a result column as fixed, label or other."""
    kind = _FIXED_COLUMNS.get(name)
    if kind is not None:
        return ResultColumn(name=name, kind=kind)
    if name.startswith(LABEL_COLUMN_PREFIX):
        return ResultColumn(
            name=name,
            kind=ColumnKind.LABEL,
            label_name=name[len(LABEL_COLUMN_PREFIX) :],
        )
    return ResultColumn(name=name, kind=ColumnKind.OTHER)


@dataclass
class ResultTable:
    """Column names and row values as returned by the store."""

    columns: list[str]
    rows: list[list[Any]] = field(default_factory=list)

    def tagged_columns(self) -> list[ResultColumn]:
        return [classify_column(name) for name in self.columns]

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "ResultTable":
        """Build from a decoded CrateDB response body (``cols``/``rows``).

        Raises:
            MalformedResultError: If ``cols`` is not a list of strings or
                ``rows`` is not a list of lists.
        """
        columns: Sequence[Any] = data.get("cols") or []
        rows: Sequence[Any] = data.get("rows") or []

        if not isinstance(columns, list) or not all(
            isinstance(name, str) for name in columns
        ):
            raise MalformedResultError("'cols' must be a list of column names")
        if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
            raise MalformedResultError("'rows' must be a list of rows")

        return cls(columns=list(columns), rows=[list(row) for row in rows])
