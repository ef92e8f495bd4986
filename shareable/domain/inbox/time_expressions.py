"""
Time Expressions

Resolves human-readable time expressions ("2018-01-01", "+1 day",
"tomorrow 3 hours", "2 weeks ago") to Unix timestamps.
"""

import calendar
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Tuple

from ..errors import InvalidTimeExpressionError

_INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")

_WHITESPACE = re.compile(r"[\s,]+")
_ABSOLUTE_DATE = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"(?:[ t](?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?(?![\d:])"
)
_TIMESTAMP = re.compile(r"@(?P<ts>-?\d+)\b")
_KEYWORD = re.compile(r"(?P<keyword>now|today|midnight|noon|tomorrow|yesterday)\b")
_NEXT_LAST = re.compile(r"(?P<direction>next|last)\s+(?P<unit>[a-z]+)\b")
_IN = re.compile(r"in\b")
_RELATIVE = re.compile(
    r"(?P<sign>[+-])?\s*(?P<count>\d+)\s*(?P<unit>[a-z]+)\b(?P<ago>\s+ago\b)?"
)

# Units with a fixed length in seconds; months and years are calendar based
_UNIT_SECONDS = {
    "sec": 1,
    "second": 1,
    "min": 60,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "fortnight": 14 * 86400,
}
_CALENDAR_UNITS = {"month": 1, "year": 12}
_DAY_UNITS = ("day", "week", "fortnight")


class TimeExpressionError(ValueError):
    """Raised when a time expression cannot be resolved."""


def _normalize_unit(unit: str) -> str:
    singular = unit[:-1] if unit.endswith("s") and unit not in _UNIT_SECONDS else unit
    if singular not in _UNIT_SECONDS and singular not in _CALENDAR_UNITS:
        raise TimeExpressionError(f'Unknown time unit "{unit}"')
    return singular


def _add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    index = moment.year * 12 + moment.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _apply(moment: datetime, count: int, unit: str) -> datetime:
    if unit in _CALENDAR_UNITS:
        return _add_months(moment, count * _CALENDAR_UNITS[unit])

    seconds = count * _UNIT_SECONDS[unit]
    if unit in _DAY_UNITS:
        # days keep the wall-clock time across DST changes
        return moment + timedelta(seconds=seconds)

    tz = moment.tzinfo
    return (moment.astimezone(timezone.utc) + timedelta(seconds=seconds)).astimezone(tz)


def resolve_time(expression: str, base: int, tz: tzinfo = timezone.utc) -> int:
    """
    Resolve a time expression to a Unix timestamp.

    Supported forms (case-insensitive, combinable):

    - absolute: ``2018-01-01``, ``2018-01-01 12:30[:45]``,
      ``2018-01-01T12:30``, ``@1514764800``
    - keywords: ``now``, ``today``, ``midnight``, ``noon``,
      ``tomorrow``, ``yesterday``
    - relative: ``+1 day``, ``-2 hours``, ``in 3 weeks``,
      ``1 month ago``, ``next year``, ``last week``

    Args:
        expression: Expression to resolve
        base: Timestamp relative expressions are based on
        tz: Timezone for dates without explicit time and calendar math

    Returns:
        Unix timestamp

    Raises:
        TimeExpressionError: If the expression cannot be understood
    """
    text = expression.strip().lower()
    if not text:
        raise TimeExpressionError("Empty time expression")

    try:
        return _resolve(text, base, tz)
    except TimeExpressionError:
        raise
    except (ValueError, OverflowError, OSError) as e:
        # dates beyond what datetime or the platform can represent
        raise TimeExpressionError(f'Time "{expression}" is out of range') from e


def _resolve(text: str, base: int, tz: tzinfo) -> int:
    moment = datetime.fromtimestamp(base, tz)
    offsets: List[Tuple[int, str]] = []
    pos = 0

    while pos < len(text):
        match = _WHITESPACE.match(text, pos)
        if match:
            pos = match.end()
            continue

        match = _ABSOLUTE_DATE.match(text, pos)
        if match:
            moment = datetime(
                int(match["year"]),
                int(match["month"]),
                int(match["day"]),
                int(match["hour"] or 0),
                int(match["minute"] or 0),
                int(match["second"] or 0),
                tzinfo=tz,
            )
            pos = match.end()
            continue

        match = _TIMESTAMP.match(text, pos)
        if match:
            moment = datetime.fromtimestamp(int(match["ts"]), tz)
            pos = match.end()
            continue

        match = _KEYWORD.match(text, pos)
        if match:
            keyword = match["keyword"]
            if keyword in ("today", "midnight"):
                moment = _midnight(moment)
            elif keyword == "noon":
                moment = _midnight(moment).replace(hour=12)
            elif keyword == "tomorrow":
                moment = _midnight(moment) + timedelta(days=1)
            elif keyword == "yesterday":
                moment = _midnight(moment) - timedelta(days=1)
            pos = match.end()
            continue

        match = _NEXT_LAST.match(text, pos)
        if match:
            count = 1 if match["direction"] == "next" else -1
            offsets.append((count, _normalize_unit(match["unit"])))
            pos = match.end()
            continue

        match = _IN.match(text, pos)
        if match:
            pos = match.end()
            continue

        match = _RELATIVE.match(text, pos)
        if match:
            count = int(match["count"])
            if match["sign"] == "-":
                count = -count
            if match["ago"]:
                count = -count
            offsets.append((count, _normalize_unit(match["unit"])))
            pos = match.end()
            continue

        raise TimeExpressionError(f'Unexpected input "{text[pos:]}"')

    for count, unit in offsets:
        moment = _apply(moment, count, unit)

    return int(moment.timestamp())


def is_integer(value: str) -> bool:
    """Check if a request value is a plain (optionally signed) integer."""
    return _INTEGER.match(value) is not None


def parse_time(field: str, value: str, base: int, tz: tzinfo = timezone.utc) -> int:
    """
    Convert a request value to a timestamp.

    Integers are used verbatim, anything else is resolved as time
    expression relative to ``base``.

    Raises:
        InvalidTimeExpressionError: If the value cannot be converted
    """
    if is_integer(value):
        return int(value)

    try:
        return resolve_time(value, base, tz)
    except TimeExpressionError as e:
        raise InvalidTimeExpressionError(
            f'Could not convert value "{value}" for field "{field}" to timestamp',
            original_error=e,
        ) from e
