"""Translation between Prometheus remote read/write and CrateDB SQL.

Everything in this package is pure: it builds statements and assembles
results but never talks to the store.
"""

from crateadapter.translation.escaping import escape_label_name, escape_label_value
from crateadapter.translation.matchers import matcher_to_sql
from crateadapter.translation.models import (
    BulkStatement,
    LabelMatcher,
    MatchType,
    Query,
    ResultTable,
    Sample,
    SeriesKey,
    SQLStatement,
    TimeSeries,
)
from crateadapter.translation.observer import NullObserver, TranslationObserver
from crateadapter.translation.query import query_to_sql
from crateadapter.translation.results import ResultAssembler, response_to_timeseries
from crateadapter.translation.writes import WriteBuilder

__all__ = [
    "BulkStatement",
    "LabelMatcher",
    "MatchType",
    "NullObserver",
    "Query",
    "ResultAssembler",
    "ResultTable",
    "Sample",
    "SeriesKey",
    "SQLStatement",
    "TimeSeries",
    "TranslationObserver",
    "WriteBuilder",
    "escape_label_name",
    "escape_label_value",
    "matcher_to_sql",
    "query_to_sql",
    "response_to_timeseries",
]
