import calendar
from datetime import date, timedelta
from enum import Enum
from typing import NamedTuple

from errors import InvalidRangeKey


class RangeKey(Enum):
    TODAY = "Today"
    YESTERDAY = "Yesterday"
    THIS_MONTH = "This month"
    LAST_MONTH = "Last month"
    THIS_YEAR = "This year"

    def __str__(self):
        return self.value


VALID_KEYS = [k.value for k in RangeKey]


class DateSpan(NamedTuple):
    start: date
    end: date

    @property
    def start_text(self):
        return format_report_date(self.start)

    @property
    def end_text(self):
        return format_report_date(self.end)


def format_report_date(d):
    """2026-03-07 -> '2026/03/07', the form the portal's date filter expects."""
    return d.strftime("%Y/%m/%d")


def parse_range_key(value):
    if isinstance(value, RangeKey):
        return value
    try:
        return RangeKey(value)
    except ValueError:
        raise InvalidRangeKey(value) from None


def resolve_range(range_key, today=None):
    """
    Returns the inclusive DateSpan for a range key, relative to the local
    calendar date (or `today` when given).

    Example: on 2026-03-15, 'Last month' -> 2026-02-01 .. 2026-02-28.
    """
    key = parse_range_key(range_key)
    if today is None:
        today = date.today()

    if key is RangeKey.TODAY:
        return DateSpan(today, today)
    if key is RangeKey.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return DateSpan(yesterday, yesterday)
    if key is RangeKey.THIS_MONTH:
        return DateSpan(today.replace(day=1), today)
    if key is RangeKey.LAST_MONTH:
        if today.month == 1:
            year, month = today.year - 1, 12
        else:
            year, month = today.year, today.month - 1
        last_day = calendar.monthrange(year, month)[1]
        return DateSpan(date(year, month, 1), date(year, month, last_day))
    # THIS_YEAR
    return DateSpan(date(today.year, 1, 1), today)
