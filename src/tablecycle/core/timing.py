"""
Timestamp handling – parsing, creation-time normalization, display strings.

Start times are resolved by an ordered strategy:

1. a pre-combined timestamp (``starts_at`` / ``startsAt``);
2. a calendar date plus an ``HH:MM`` time of day, applied as UTC wall-clock;
3. nothing – the table is untimed.

A bad combined timestamp only logs and falls through to step 2; a bad
date/time pair rejects the request.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Callable, Mapping, Optional, Tuple

from ..errors import ValidationError

logger = logging.getLogger(__name__)

TIME_OF_DAY = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")

STARTS_AT_KEYS = ("starts_at", "startsAt")
DATE_KEYS = ("selected_date", "selectedDate")
TIME_KEYS = ("selected_time", "selectedTime")
TIMING_KEYS = STARTS_AT_KEYS + DATE_KEYS + TIME_KEYS

TBD = "TBD"


def utc_now() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def parse_instant(value: Any) -> Optional[dt.datetime]:
    """Parse a persisted or submitted timestamp into an aware UTC datetime.

    Returns ``None`` for anything that is not a valid instant; never raises.
    Naive values are taken as UTC, date-only strings as UTC midnight.
    """
    if isinstance(value, dt.datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return as_utc(dt.datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


def isoformat(value: dt.datetime) -> str:
    """Canonical storage form: UTC, millisecond precision, ``Z`` suffix."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _first(payload: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _calendar_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return as_utc(value).date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        parsed = parse_instant(value)
        if parsed is not None:
            return parsed.date()
        raise ValidationError(f"Invalid selected_date: {value}")
    raise ValidationError(f"Invalid selected_date type: {type(value).__name__}")


def _from_combined(payload: Mapping[str, Any]) -> Optional[dt.datetime]:
    raw = _first(payload, STARTS_AT_KEYS)
    if raw is None:
        return None
    parsed = parse_instant(raw)
    if parsed is None:
        logger.warning("Invalid starts_at provided: %r", raw)
    return parsed


def _from_date_and_time(payload: Mapping[str, Any]) -> Optional[dt.datetime]:
    raw_date = _first(payload, DATE_KEYS)
    raw_time = _first(payload, TIME_KEYS)
    if raw_date is None or raw_time is None:
        return None

    day = _calendar_date(raw_date)
    match = TIME_OF_DAY.fullmatch(raw_time) if isinstance(raw_time, str) else None
    if match is None:
        raise ValidationError(f"Invalid time format (expected HH:MM): {raw_time}")

    hour, minute = int(match.group(1)), int(match.group(2))
    return dt.datetime.combine(day, dt.time(hour, minute), tzinfo=dt.timezone.utc)


RESOLVERS: Tuple[Callable[[Mapping[str, Any]], Optional[dt.datetime]], ...] = (
    _from_combined,
    _from_date_and_time,
)


def resolve_starts_at(payload: Mapping[str, Any]) -> Optional[dt.datetime]:
    """Run the resolvers in order; the first non-``None`` result wins."""
    for resolver in RESOLVERS:
        starts_at = resolver(payload)
        if starts_at is not None:
            return starts_at
    return None


def _display(day: dt.date) -> str:
    return f"{day:%b} {day.day}, {day.year}"


def display_date(starts_at: Optional[dt.datetime], payload: Mapping[str, Any]) -> str:
    """``"Mar 1, 2025"`` from the start time, else the submitted date, else TBD."""
    if starts_at is not None:
        return _display(starts_at.date())
    raw_date = _first(payload, DATE_KEYS)
    if raw_date is None:
        return TBD
    try:
        return _display(_calendar_date(raw_date))
    except ValidationError:
        logger.warning("Could not format selected_date %r", raw_date)
        return TBD


def display_time(payload: Mapping[str, Any]) -> str:
    raw_time = _first(payload, TIME_KEYS)
    return raw_time if isinstance(raw_time, str) else TBD
