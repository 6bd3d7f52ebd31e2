"""Clock abstraction and calendar-month helpers."""

import calendar
from collections.abc import Callable
from datetime import UTC, date, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


def get_clock() -> Clock:
    """Dependency returning the clock used by request handlers."""
    return utc_now


def last_day_of_month(year: int, month: int) -> date:
    """Last calendar day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Move (year, month) by a signed number of months."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def month_index(year: int, month: int) -> int:
    """Linear month number, handy for ordering and range arithmetic."""
    return year * 12 + (month - 1)
