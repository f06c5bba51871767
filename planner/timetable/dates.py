"""
Calendar date helpers.

Weeks run Monday-Friday; weekday numbers are 1-5 to match the timetable
document. All dates are local wall-clock `datetime.date` values.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Union

MONTH_NAMES_SHORT = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
DAY_NAMES_SHORT = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

ONE_WEEK = timedelta(weeks=1)

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string (time part ignored)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO date string, got: {value!r}")
    return date.fromisoformat(value.split("T")[0])


def get_monday(day: DateLike) -> date:
    """Monday of the week containing `day` (Sunday belongs to the preceding week)."""
    d = parse_date(day)
    return d - timedelta(days=d.weekday())


def day_of_week(day: DateLike) -> int:
    """1=Monday ... 7=Sunday."""
    return parse_date(day).isoweekday()


def is_weekday(day: DateLike) -> bool:
    return day_of_week(day) <= 5


def week_days(day: DateLike) -> list[date]:
    """The five dates Monday-Friday of the week containing `day`."""
    monday = get_monday(day)
    return [monday + timedelta(days=i) for i in range(5)]


def shift_week(day: DateLike, weeks: int) -> date:
    return parse_date(day) + timedelta(weeks=weeks)


def iter_weekdays(start: date, end: date) -> Iterator[date]:
    """Every Monday-Friday date in [start, end]; nothing if end < start."""
    current = start
    while current <= end:
        if current.weekday() < 5:
            yield current
        current += timedelta(days=1)


def format_day_short(day: date) -> str:
    """'Mon 21 Jan'"""
    return f"{DAY_NAMES_SHORT[day.weekday()]} {day.day} {MONTH_NAMES_SHORT[day.month - 1]}"


def format_week_range(monday: date) -> str:
    """'19 – 23 Jan 2026', or '29 Dec – 2 Jan 2026' across a month boundary."""
    friday = monday + timedelta(days=4)
    mon_month = MONTH_NAMES_SHORT[monday.month - 1]
    fri_month = MONTH_NAMES_SHORT[friday.month - 1]

    if monday.month == friday.month:
        return f"{monday.day} – {friday.day} {mon_month} {friday.year}"
    return f"{monday.day} {mon_month} – {friday.day} {fri_month} {friday.year}"
