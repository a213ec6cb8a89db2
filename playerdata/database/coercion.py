"""
Database Module for playerdata - Column Coercion
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Conversions from raw ``playerdata`` column values to record fields.

Every function raises :class:`DecodingError` when the value does not have
the type the column is declared with.

:copyright: (c) 2026-present the playerdata authors
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from playerdata.database.base import DecodingError
from playerdata.logging_config import DatabaseLogger

logger = DatabaseLogger().logger

U64_MAX = 2**64 - 1
I32_MIN = -2**31
I32_MAX = 2**31 - 1


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def datetime_to_rfc3339(value: Any) -> str:
    """
    DATETIME -> RFC 3339 text. Naive values are taken to be UTC.

    Fractional seconds use the shortest of 0, 3 or 6 digits that is exact,
    so ``.250000`` is written as ``.250``.
    """
    if not isinstance(value, datetime):
        raise DecodingError(f"expected DATETIME, got {type(value).__name__}")

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    if value.microsecond % 1000 == 0:
        return value.isoformat(timespec='seconds' if value.microsecond == 0 else 'milliseconds')
    return value.isoformat(timespec='microseconds')


def bigint_to_u64(value: Any) -> int:
    """BIGINT -> unsigned 64-bit, unchanged."""
    if not _is_int(value):
        raise DecodingError(f"expected BIGINT, got {type(value).__name__}")
    if not 0 <= value <= U64_MAX:
        raise DecodingError(f"value {value} does not fit an unsigned 64-bit integer")
    return value


def double_to_u64(value: Any) -> int:
    """
    DOUBLE -> unsigned 64-bit.

    Rounds to the nearest integer with halves going away from zero, so
    ``41.5`` becomes ``42`` and ``42.5`` becomes ``43``. The cast saturates:
    negative values and NaN give ``0``, values past the range give
    ``U64_MAX``.
    """
    if not (_is_int(value) or isinstance(value, (float, Decimal))):
        raise DecodingError(f"expected DOUBLE, got {type(value).__name__}")

    value = float(value)
    if math.isnan(value) or value <= 0:
        return 0
    if value >= 2**64:
        return U64_MAX

    # Decimal(float) is exact, so halves are detected without float error
    rounded = int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return min(rounded, U64_MAX)


def int_to_u64(value: Any) -> int:
    """
    INT -> unsigned 64-bit.

    The value must fit a signed 32-bit integer. Negative values are
    reinterpreted as two's complement, e.g. ``-1`` becomes ``2**64 - 1``.
    """
    if not _is_int(value):
        raise DecodingError(f"expected INT, got {type(value).__name__}")
    if not I32_MIN <= value <= I32_MAX:
        raise DecodingError(f"value {value} does not fit a signed 32-bit integer")

    if value < 0:
        logger.warning(f"Negative counter {value} wrapped to {value & U64_MAX}")
    return value & U64_MAX
