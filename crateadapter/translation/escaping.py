"""Escaping of label names and values for CrateDB SQL."""

from crateadapter.translation.models import LABEL_COLUMN_PREFIX

_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "'": "\\'"})


def _escape(s: str) -> str:
    return s.translate(_ESCAPES)


def escape_label_name(name: str) -> str:
    """Quote a label name as a column identifier.

    The column carries the reserved label prefix, so no label can collide
    with the ``value``, ``valueRaw`` or ``timestamp`` columns.

    Example:
        >>> escape_label_name("__name__")
        '"l__name__"'
    """
    return '"' + LABEL_COLUMN_PREFIX + _escape(name) + '"'


def escape_label_value(value: str) -> str:
    """Quote a label value as a string literal.

    Example:
        >>> escape_label_value("it's")
        "'it\\\\'s'"
    """
    return "'" + _escape(value) + "'"
