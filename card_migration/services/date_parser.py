import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from dateutil import parser as dateutil_parser

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_PATTERN_YYYY_MM_DD = re.compile(r"^\s*(?P<y>\d{4})-(?P<m>\d{2})-(?P<d>\d{2})\s*$")


def _safe_date(y: int, m: int, d: int) -> date | None:
    try:
        return date(y, m, d)
    except ValueError:
        return None


def _as_local(value: datetime) -> datetime | None:
    # naive values are local wall-clock time; pymongo would store them as UTC otherwise
    try:
        if value.tzinfo is None:
            value = value.astimezone()
        # offsets of 24h or more parse fine but fail once encoded
        value.utcoffset()
    except (OverflowError, OSError, ValueError):
        return None
    return value


def local_midnight(day: date) -> datetime | None:
    return _as_local(datetime(day.year, day.month, day.day))


def from_epoch_millis(value: int | float) -> datetime | None:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except OverflowError:
        return None


def parse_general_datetime(text: str) -> datetime | None:
    try:
        parsed = dateutil_parser.parse(text)
    except (ValueError, OverflowError):
        return None
    return _as_local(parsed)


def parse_strict_calendar_date(text: str) -> datetime | None:
    match = _PATTERN_YYYY_MM_DD.match(text)
    if not match:
        return None
    parsed = _safe_date(int(match.group("y")), int(match.group("m")), int(match.group("d")))
    if parsed is None:
        return None
    return local_midnight(parsed)


def resolve_date_added(value: Any) -> datetime | None:
    """Resolve a legacy DATE_ADDED value into an aware datetime, or None to omit.

    Rules are tried in order and the first applicable one decides:
    null, timestamp object, epoch milliseconds, general date-time text,
    strict ``YYYY-MM-DD`` text. Anything else is omitted.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _as_local(value)
    if isinstance(value, date):
        return local_midnight(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_millis(value)

    if not isinstance(value, str):
        return None

    parsed = parse_general_datetime(value)
    if parsed is not None:
        return parsed

    return parse_strict_calendar_date(value)
