"""Encodings of sample values for storage.

CrateDB's DOUBLE columns cannot hold every IEEE-754 NaN payload Prometheus
uses (stale markers are a specific NaN), so each sample is stored twice: as
a readable decimal string in ``value`` and as its raw bit pattern, a signed
64-bit integer, in ``valueRaw``. Reads decode ``valueRaw`` only.
"""

import math
import struct

_DOUBLE = struct.Struct("<d")
_INT64 = struct.Struct("<q")


def float_to_raw(value: float) -> int:
    """Reinterpret the bits of a float64 as a signed int64."""
    return _INT64.unpack(_DOUBLE.pack(value))[0]


def raw_to_float(raw: int) -> float:
    """Reinterpret a signed int64 as float64 bits.

    Raises:
        ValueError: If ``raw`` does not fit in a signed 64-bit integer
    """
    try:
        return _DOUBLE.unpack(_INT64.pack(raw))[0]
    except struct.error as e:
        raise ValueError(f"{raw} is not a signed 64-bit integer") from e


def format_sample_value(value: float) -> str:
    """Format a sample value as a decimal string with six fractional digits.

    NaN and infinities are spelled ``NaN``, ``+Inf`` and ``-Inf``.

    Example:
        >>> format_sample_value(1.5)
        '1.500000'
        >>> format_sample_value(float("-inf"))
        '-Inf'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:f}"
