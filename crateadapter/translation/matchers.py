"""Translation of label matchers into SQL predicates.

Prometheus treats an empty label value and a missing label as the same
thing. Empty values are stored as NULL, so every predicate has to treat
NULL as the empty string.

Patterns are checked and classified with RE2, the engine Prometheus uses,
so every selector Prometheus accepts translates. CrateDB evaluates ``~`` with
Java regular expressions, so patterns relying on syntax the two engines
read differently may be classified differently than the store would.
"""

import re2
import structlog

from crateadapter.exceptions import InvalidMatcherError
from crateadapter.translation.escaping import escape_label_name, escape_label_value
from crateadapter.translation.models import LabelMatcher, MatchType

logger = structlog.get_logger(__name__)


def anchor_pattern(pattern: str) -> str:
    """Anchor a matcher pattern so it must match the whole label value."""
    return "^(?:" + pattern + ")$"


def matches_empty(matcher: LabelMatcher) -> bool:
    """Return whether the anchored matcher pattern accepts the empty string.

    Raises:
        InvalidMatcherError: If the pattern does not compile
    """
    anchored = anchor_pattern(matcher.value)
    try:
        compiled = re2.compile(anchored)
    except re2.error as e:
        raise InvalidMatcherError(matcher.name, matcher.value, str(e)) from e
    return compiled.match("") is not None


def matcher_to_sql(matcher: LabelMatcher) -> str:
    """Translate one matcher into a parenthesized SQL predicate.

    Args:
        matcher: Label matcher from a remote read query

    Returns:
        str: Predicate such as ``("ljob" = 'api')``

    Raises:
        InvalidMatcherError: If a regex matcher does not compile
    """
    column = escape_label_name(matcher.name)

    if matcher.match_type == MatchType.EQUAL:
        if matcher.value == "":
            return f"({column} IS NULL)"
        return f"({column} = {escape_label_value(matcher.value)})"

    if matcher.match_type == MatchType.NOT_EQUAL:
        if matcher.value == "":
            return f"({column} IS NOT NULL)"
        return f"({column} != {escape_label_value(matcher.value)})"

    if matcher.match_type == MatchType.REGEX_MATCH:
        pattern = escape_label_value(anchor_pattern(matcher.value))
        if matches_empty(matcher):
            return f"({column} ~ {pattern} OR {column} IS NULL)"
        return f"({column} ~ {pattern})"

    if matcher.match_type == MatchType.REGEX_NO_MATCH:
        pattern = escape_label_value(anchor_pattern(matcher.value))
        if matches_empty(matcher):
            return f"({column} !~ {pattern})"
        return f"({column} !~ {pattern} OR {column} IS NULL)"

    logger.error("unknown_match_type", name=matcher.name, match_type=matcher.match_type)
    raise InvalidMatcherError(
        matcher.name, matcher.value, f"unknown match type {matcher.match_type!r}"
    )
