"""Lenient value parsers for store rows and query strings."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation


_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_DATE_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
)


def parse_number_prefix(value: object) -> Decimal | None:
    """Parse the leading numeric part of ``value``.

    ``"12abc"`` gives 12, ``"12,5"`` gives 12.5 and text without a leading
    number gives ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        number = Decimal(str(value))
        return number if number.is_finite() else None

    text = str(value).strip().replace(",", ".")
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return None
    try:
        number = Decimal(match.group(0))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_datetime(value: object) -> datetime | None:
    """Parse a store timestamp into a naive local datetime, ``None`` when unusable."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    candidate = f"{text[:-1]}+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _to_local_naive(datetime.fromisoformat(candidate))
    except ValueError:
        pass

    for date_format in _DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            continue
    return None


def format_plain_number(value: Decimal) -> str:
    """Return ``value`` without exponent or trailing zeros (``100.50`` -> ``"100.5"``)."""
    return format(value.normalize(), "f")
