"""Validation and string-conversion helpers shared by the API models."""

from __future__ import annotations

import re
from collections.abc import Iterable, Set
from typing import Any

__all__ = [
    "ValidationError",
    "validate_rfc3339_date",
    "validate_rfc3339_date_time",
    "has_only_unique_items",
    "to_string_value",
    "from_string_value",
    "from_string_list",
]


class ValidationError(ValueError):
    """Raised when a model fails validation."""


_RFC3339_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_RFC3339_DATE_TIME = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(\.\d+)?"
    r"([Zz]|([+\-])(\d{2}):(\d{2}))",
    re.ASCII,
)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)", re.ASCII)
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.ASCII | re.IGNORECASE,
)


def _is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def _valid_date(year: int, month: int, day: int) -> bool:
    if month == 0 or month > 12 or day == 0:
        return False
    if month == 2 and day > 28 + _is_leap_year(year):
        return False
    if month <= 7 and day > 30 + month % 2:
        return False
    if month >= 8 and day > 31 - month % 2:
        return False
    return True


def _valid_time(hours: int, minutes: int, seconds: int) -> bool:
    return hours <= 23 and minutes <= 59 and seconds <= 60


def validate_rfc3339_date(text: str) -> bool:
    """Return whether *text* is an RFC 3339 full-date."""
    match = _RFC3339_DATE.fullmatch(text)
    if match is None:
        return False
    year, month, day = (int(g) for g in match.groups())
    return _valid_date(year, month, day)


def validate_rfc3339_date_time(text: str) -> bool:
    """Return whether *text* is an RFC 3339 date-time."""
    match = _RFC3339_DATE_TIME.fullmatch(text)
    if match is None:
        return False
    year, month, day, hours, minutes, seconds = (int(g) for g in match.groups()[:6])
    return _valid_date(year, month, day) and _valid_time(hours, minutes, seconds)


def has_only_unique_items(items: Iterable[Any]) -> bool:
    """Return whether no two elements of *items* compare equal.

    Only ``==`` is used, so unhashable elements are supported.
    """
    if isinstance(items, Set):
        return True
    values = list(items)
    return not any(
        first == second
        for position, first in enumerate(values)
        for second in values[position + 1:]
    )


def to_string_value(value: Any) -> str:
    """Render a primitive value as its wire string."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.6f}"
    raise TypeError(f"unsupported value type: {type(value).__name__}")


def from_string_value(text: str, kind: type) -> Any:
    """Parse *text* as a value of *kind* (``str``, ``int``, ``bool`` or ``float``).

    Numbers are read from the leading part of the text, as the wire
    format allows trailing characters. Raises ValueError when nothing
    can be parsed.
    """
    if kind is str:
        return text
    if kind is bool:
        if text == "true":
            return True
        if text == "false":
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if kind is int:
        match = _INT_PREFIX.match(text)
        if match is None:
            raise ValueError(f"not an integer: {text!r}")
        return int(match.group(1))
    if kind is float:
        match = _FLOAT_PREFIX.match(text)
        if match is None:
            raise ValueError(f"not a number: {text!r}")
        return float(match.group(1))
    raise TypeError(f"unsupported kind: {kind!r}")


def from_string_list(text: str, kind: type, separator: str = ",") -> list[Any]:
    """Parse a separated list of values of *kind*.

    Items that cannot be parsed are skipped. Raises ValueError when no
    item could be parsed.
    """
    pieces = text.split(separator)
    if pieces and pieces[-1] == "":
        pieces.pop()
    values = []
    for piece in pieces:
        try:
            values.append(from_string_value(piece, kind))
        except ValueError:
            continue
    if not values:
        raise ValueError(f"no {kind.__name__} values found in {text!r}")
    return values