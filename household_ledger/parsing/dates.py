"""
Date Resolution for Imported Cells

Spreadsheet date cells arrive in many shapes: serial numbers, native
datetimes, "15/08/2024", "08/15/2024", "2024-08-15". This module turns all
of them into a calendar date.

DISAMBIGUATION POLICY for D/M/Y-looking strings, applied in order:
1. First group > 12  -> it is the day (day/month/year)
2. Second group > 12 -> the input is month-first, swap (month/day/year)
3. Otherwise         -> ambiguous, default to day/month/year (id-ID locale)

Textual dates must name day, month and year; "Aug 2024" is not a date.

IMPORTANT: resolve_date() never raises. Unparseable input returns None and
the caller decides what that means (the importer turns it into a row error).
"""

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional, Union

from dateutil import parser as dateutil_parser


# Serial 25569 is 1970-01-01 in spreadsheet day numbering
SERIAL_UNIX_EPOCH = 25569
MILLISECONDS_PER_DAY = 86_400_000

_UNIX_EPOCH = datetime(1970, 1, 1)
_DELIMITED_DATE = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{2,4})$")
_PARTIAL_DATE_DEFAULTS = (datetime(2001, 1, 1), datetime(2002, 2, 2))


def resolve_date(value: Any) -> Optional[date]:
    """
    Resolve a raw cell value into a calendar date.

    Args:
        value: Serial number, string, date or datetime

    Returns:
        The resolved date, or None if the value cannot be read as a valid date
    """
    if value is None or isinstance(value, bool):
        return None

    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, (int, float, Decimal)):
        return _from_serial(value)

    if isinstance(value, str):
        return _from_string(value)

    return None


def format_date(value: date) -> str:
    """Format a date the way id-ID displays it (d/m/yyyy, no padding)."""
    return f"{value.day}/{value.month}/{value.year}"


def _from_serial(serial: Union[int, float, Decimal]) -> Optional[date]:
    try:
        offset_days = float(serial) - SERIAL_UNIX_EPOCH
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(offset_days):
        return None

    epoch_ms = round(offset_days * MILLISECONDS_PER_DAY)
    try:
        return (_UNIX_EPOCH + timedelta(milliseconds=epoch_ms)).date()
    except OverflowError:
        return None


def _from_string(raw: str) -> Optional[date]:
    text = raw.strip()
    if not text:
        return None

    match = _DELIMITED_DATE.match(text)
    if match:
        first, second, year = (int(group) for group in match.groups())
        if year < 100:
            year += 2000

        if first > 12:
            return _safe_date(year, second, first)
        if second > 12:
            return _safe_date(year, first, second)
        return _safe_date(year, second, first)

    return _parse_generic(text)


def _parse_generic(text: str) -> Optional[date]:
    """Fallback for ISO 8601 and other unambiguous textual dates."""
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    # dateutil fills missing parts from its default; a complete date parses
    # the same against two defaults that differ in year, month and day
    try:
        first, second = (
            dateutil_parser.parse(text, default=default).date()
            for default in _PARTIAL_DATE_DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    return first if first == second else None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    # No roll-over: 31/02 is rejected rather than becoming 2 or 3 March
    try:
        return date(year, month, day)
    except ValueError:
        return None
