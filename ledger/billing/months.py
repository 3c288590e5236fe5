"""
Billing Month Arithmetic

Billing months are plain "YYYY-MM" strings throughout the ledger, the same
keys that CardSetting.issued_months and statement_amounts use.

Two day-of-month rules live here and are used deliberately:
- day_in_month() ROLLS OVER: day 31 of a 30-day month is the 1st of the
  next month. Cycle boundaries use it so consecutive cycles stay contiguous.
- add_months() CLAMPS: Jan 31 + 1 month is the last day of February.
  Series generation uses it so every sibling stays in its own month.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Optional

from ledger.models.transaction import MONTH_KEY_PATTERN


_MONTH_KEY_RE = re.compile(MONTH_KEY_PATTERN)


class MonthKeyError(ValueError):
    """A billing month key is not of the form YYYY-MM."""
    pass


def parse_month_key(key: str) -> tuple[int, int]:
    """Split "YYYY-MM" into (year, month)."""
    if not isinstance(key, str) or not _MONTH_KEY_RE.match(key):
        raise MonthKeyError(f"Invalid billing month: {key!r} (expected YYYY-MM)")
    year, month = key.split("-")
    return int(year), int(month)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_key_of(day: date) -> str:
    return month_key(day.year, day.month)


def shift_month(key: str, offset: int) -> str:
    """Move a billing month key by offset months (negative goes back)."""
    year, month = parse_month_key(key)
    index = year * 12 + (month - 1) + offset
    return month_key(index // 12, index % 12 + 1)


def previous_month(key: str) -> str:
    return shift_month(key, -1)


def next_month(key: str) -> str:
    return shift_month(key, 1)


def day_in_month(year: int, month: int, day: int) -> date:
    """
    Day `day` of the given month with native overflow rollover.

    Month may be 0 or 13 (it is normalized first); day may exceed the
    month length, in which case the date rolls into the following month.
    """
    index = year * 12 + (month - 1)
    first = date(index // 12, index % 12 + 1, 1)
    return first + timedelta(days=day - 1)


def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the end of the target month."""
    index = start.year * 12 + (start.month - 1) + months
    year, month = index // 12, index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def in_period(day: date, period: Optional[str]) -> bool:
    """
    Does `day` fall inside a reporting period?

    period is "YYYY-MM" for a month, "YYYY" for a year, or None / "all".
    """
    if period is None or period == "all":
        return True
    if re.fullmatch(r"\d{4}", period):
        return day.year == int(period)
    year, month = parse_month_key(period)
    return day.year == year and day.month == month
