"""
dates.py
Date normalization: every date that enters the system (forms, spreadsheets,
stored JSON) is reduced to an ISO calendar date string, or '' when unusable.
"""

from __future__ import annotations

import calendar
import math
import numbers
import re
from datetime import date, datetime, timedelta

import pandas as pd

# Spreadsheet date serials count days from this epoch (serial 0)
SERIAL_EPOCH = date(1899, 12, 30)

# How to read d/m/y strings when both leading parts are <= 12.
# False keeps the month-first reading of generic date parsing (03/04/2024 -> March 4).
DATE_DAY_FIRST = False

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SERIAL_RE = re.compile(r"^\d{1,5}(\.\d+)?$")
_PARTS_RE = re.compile(r"^(\d{1,4})[/.\-](\d{1,2})[/.\-](\d{1,4})$")


def today_iso() -> str:
    return date.today().isoformat()


def parse_date(value: str | None) -> date | None:
    """ISO string -> date, None when empty or invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def serial_to_iso(serial) -> str:
    try:
        days = int(math.floor(float(serial)))
    except (TypeError, ValueError, OverflowError):
        return ""
    if days < 0:
        return ""
    try:
        return (SERIAL_EPOCH + timedelta(days=days)).isoformat()
    except OverflowError:
        return ""


def iso_to_serial(value: str) -> int | None:
    d = parse_date(value)
    if d is None:
        return None
    return (d - SERIAL_EPOCH).days


def split_day_month(first: int, second: int, day_first: bool | None = None) -> tuple[int, int]:
    """
    Decide which of two leading date parts is the day.

    A first part greater than 12 can only be a day; a second part greater
    than 12 can only be a day. When both fit a month the ``day_first`` flag
    (default DATE_DAY_FIRST) decides. Returns (day, month).
    """
    if day_first is None:
        day_first = DATE_DAY_FIRST
    if first > 12:
        return first, second
    if second > 12:
        return second, first
    return (first, second) if day_first else (second, first)


def _from_parts(text: str, day_first: bool | None) -> str | None:
    match = _PARTS_RE.match(text)
    if not match:
        return None
    a, b, c = (int(p) for p in match.groups())
    if len(match.group(1)) == 4:
        year, month, day = a, b, c
    else:
        day, month = split_day_month(a, b, day_first)
        year = c + 2000 if c < 100 else c
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return ""


def normalize_date(value, day_first: bool | None = None) -> str:
    """
    Convert a date-ish value to 'YYYY-MM-DD'. Never raises; returns '' on failure.

    Accepted: date/datetime/Timestamp, spreadsheet serial numbers (int, float or
    a short digit string), ISO strings, d/m/y strings (see split_day_month) and
    whatever pandas can parse.
    """
    if value is None or isinstance(value, bool) or not pd.api.types.is_scalar(value):
        return ""
    if not isinstance(value, (str, date)) and pd.isna(value):
        return ""
    if isinstance(value, datetime):
        if pd.isna(value):
            return ""
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Real):
        return serial_to_iso(value)

    text = str(value).strip()
    if not text:
        return ""
    if _ISO_RE.match(text):
        return text if parse_date(text) else ""
    if _SERIAL_RE.match(text):
        return serial_to_iso(text)

    from_parts = _from_parts(text, day_first)
    if from_parts is not None:
        return from_parts

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return ""
    if pd.isna(parsed):
        return ""
    return parsed.date().isoformat()


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """First and last ISO day of a month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last).isoformat()


def business_days(year: int, month: int) -> int:
    """Days in the month excluding Sundays."""
    last = calendar.monthrange(year, month)[1]
    return sum(1 for day in range(1, last + 1) if date(year, month, day).weekday() != 6)
