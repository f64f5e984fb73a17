"""Translation of remote read queries into CrateDB SELECT statements."""

import structlog

from crateadapter.translation.matchers import matcher_to_sql
from crateadapter.translation.models import TIMESTAMP_COLUMN, Query, SQLStatement
from crateadapter.translation.observer import NullObserver, TranslationObserver

logger = structlog.get_logger(__name__)

DEFAULT_TABLE = "metrics"


def query_to_sql(
    query: Query,
    table: str = DEFAULT_TABLE,
    observer: TranslationObserver | None = None,
) -> SQLStatement:
    """Build the SELECT statement for a remote read query.

    All matcher predicates and the inclusive time range are joined with
    AND. Rows are ordered by timestamp so samples can be appended to their
    series in chronological order. No LIMIT is applied. Values are inlined
    as escaped literals, so the statement carries no arguments.

    Args:
        query: Query with matchers and time range in milliseconds
        table: Table holding one row per sample
        observer: Receives ``on_query_translated`` once the statement is built

    Returns:
        SQLStatement: The SELECT statement

    Raises:
        InvalidMatcherError: If any regex matcher does not compile. No
            statement is produced in that case.

    Example:
        >>> q = Query([LabelMatcher("__name__", "up")], 1000, 2000)
        >>> query_to_sql(q).text
        'SELECT * FROM metrics WHERE ("l__name__" = \\'up\\') AND (timestamp <= 2000) AND (timestamp >= 1000) ORDER BY timestamp'
    """
    selectors = [matcher_to_sql(m) for m in query.matchers]
    selectors.append(f"({TIMESTAMP_COLUMN} <= {int(query.end_timestamp_ms)})")
    selectors.append(f"({TIMESTAMP_COLUMN} >= {int(query.start_timestamp_ms)})")

    statement = SQLStatement(
        text=(
            f"SELECT * FROM {table} WHERE {' AND '.join(selectors)} "
            f"ORDER BY {TIMESTAMP_COLUMN}"
        )
    )

    logger.debug(
        "query_translated",
        matchers=len(query.matchers),
        start_ms=query.start_timestamp_ms,
        end_ms=query.end_timestamp_ms,
        stmt=statement.text,
    )
    (observer or NullObserver()).on_query_translated(query, statement)
    return statement
