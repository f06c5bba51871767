"""Calendar projection: dates, holidays, occurrences and week views."""

from .dates import get_monday, week_days, parse_date, day_of_week
from .holidays import HolidayCalendar, HolidayPeriod, HolidayDayKind
from .occurrences import (
    DEFAULT_HORIZON_WEEKS,
    Occurrence,
    OccurrenceGenerator,
    merge_consecutive_lessons,
    merged_period_label,
)
from .views import (
    lessons_for_week,
    week_lessons,
    duties_for_week,
    time_range,
    class_recurring_schedule,
    class_rooms,
    lessons_per_cycle,
)

__all__ = [
    # Dates
    "get_monday",
    "week_days",
    "parse_date",
    "day_of_week",
    # Holidays
    "HolidayCalendar",
    "HolidayPeriod",
    "HolidayDayKind",
    # Occurrences
    "DEFAULT_HORIZON_WEEKS",
    "Occurrence",
    "OccurrenceGenerator",
    "merge_consecutive_lessons",
    "merged_period_label",
    # Views
    "lessons_for_week",
    "week_lessons",
    "duties_for_week",
    "time_range",
    "class_recurring_schedule",
    "class_rooms",
    "lessons_per_cycle",
]
