"""Duration grammar for task windows.

Two grammars are supported:

- The standard duration grammar: an optionally signed sequence of decimal
  numbers with unit suffixes, e.g. ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``.
  Valid units are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``.
- The month grammar: a ``(sign?)(digits)M`` token, optionally combined with a
  standard duration residual, e.g. ``"1M"``, ``"-2M"`` or ``"1M12h"``.

Months are a fixed-width approximation: one month is always 30 days
(720 hours). Calendar months are not taken into account.

Example:
    >>> parse_window_duration("1M12h")
    datetime.timedelta(days=30, seconds=43200)
    >>> format_duration(parse_window_duration("1M"))
    '720h0m0s'
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from sluice_core.errors import ParseError

HOURS_IN_MONTH = timedelta(days=30)
"""Fixed width of one month in the month grammar."""

MONTH_PATTERN = re.compile(r"([+-])?([0-9]+)(M)")
"""Month token: optional sign, digits, literal ``M``."""

_COMPONENT_PATTERN = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")

# Microseconds per unit; ns rounds to the nearest microsecond.
_UNIT_MICROSECONDS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_MICROSECONDS_PER_SECOND = 1_000_000
_MICROSECONDS_PER_MINUTE = 60 * _MICROSECONDS_PER_SECOND
_MICROSECONDS_PER_HOUR = 60 * _MICROSECONDS_PER_MINUTE


class NotAMonthDurationError(ParseError):
    """Raised by parse_month_duration when the input has no month token.

    Callers catch this to fall back to the standard grammar.
    """

    def __init__(self, value: str) -> None:
        super().__init__("invalid month string", value=value)


def parse_duration(text: str) -> timedelta:
    """Parse a standard duration string.

    Args:
        text: Duration such as ``"24h"``, ``"-1h30m"`` or ``"0"``.

    Returns:
        The signed duration.

    Raises:
        ParseError: If the string is empty, has no unit, or uses an unknown unit.

    Example:
        >>> parse_duration("2h45m")
        datetime.timedelta(seconds=9900)
    """
    original = text
    sign = 1
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ParseError("invalid duration", value=original)

    total = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _COMPONENT_PATTERN.match(text, pos)
        if match is None:
            raise ParseError("invalid duration", value=original)
        number, unit = match.groups()
        try:
            total += Decimal(number) * _UNIT_MICROSECONDS[unit]
        except InvalidOperation as exc:
            raise ParseError("invalid duration", value=original) from exc
        pos = match.end()

    microseconds = int(total.to_integral_value())
    return timedelta(microseconds=sign * microseconds)


def parse_month_duration(text: str) -> timedelta:
    """Parse a duration that carries a month token.

    The first month token is converted to ``months * 720h`` (sign-adjusted).
    Every month token is then removed from the input, so ``"1M2M"`` is 720h,
    and any remaining non-whitespace text is parsed with the standard
    grammar and added to the month span.

    Args:
        text: Duration such as ``"2M"``, ``"-1M"`` or ``"1M12h"``.

    Returns:
        The signed duration.

    Raises:
        NotAMonthDurationError: If the input has no month token.
        ParseError: If the residual after the month token is not a valid
            standard duration.
    """
    match = MONTH_PATTERN.search(text)
    if match is None:
        raise NotAMonthDurationError(text)

    sign, count, _ = match.groups()
    span = HOURS_IN_MONTH * int(count)
    if sign == "-":
        span = -span

    residual = MONTH_PATTERN.sub("", text).strip()
    if residual:
        try:
            span += parse_duration(residual)
        except ParseError as exc:
            raise ParseError("invalid duration after month notation", value=text) from exc
    return span


def parse_window_duration(text: str) -> timedelta:
    """Parse a task window duration.

    Month notation takes precedence; the standard grammar is only tried when
    the input carries no month token.

    Args:
        text: Window size or offset string.

    Returns:
        The signed duration.

    Raises:
        ParseError: If neither grammar accepts the input.
    """
    try:
        return parse_month_duration(text)
    except NotAMonthDurationError:
        return parse_duration(text)


def format_duration(value: timedelta) -> str:
    """Render a duration in canonical form.

    Durations of one second or more render as hours, minutes and seconds
    (leading zero units omitted); shorter ones use ``ms`` or ``µs``.

    Example:
        >>> format_duration(timedelta(hours=24))
        '24h0m0s'
        >>> format_duration(timedelta(milliseconds=1500))
        '1.5s'
    """
    total_us = (value.days * 86_400 + value.seconds) * _MICROSECONDS_PER_SECOND + value.microseconds
    if total_us == 0:
        return "0s"

    sign = "-" if total_us < 0 else ""
    us = abs(total_us)

    if us < _MICROSECONDS_PER_SECOND:
        if us < 1_000:
            return f"{sign}{us}µs"
        return f"{sign}{_with_fraction(us, 1_000)}ms"

    hours, rem = divmod(us, _MICROSECONDS_PER_HOUR)
    minutes, rem = divmod(rem, _MICROSECONDS_PER_MINUTE)
    seconds = _with_fraction(rem, _MICROSECONDS_PER_SECOND)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _with_fraction(value: int, unit: int) -> str:
    """Format ``value / unit`` without trailing zeros."""
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    width = len(str(unit)) - 1
    digits = str(frac).rjust(width, "0").rstrip("0")
    return f"{whole}.{digits}"
