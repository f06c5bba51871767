"""
Read-only projections of the timetable for week and class views.

These do not number occurrences; they answer "what happens in this week"
and "what does this class's cycle look like".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from ..data.models import Duty, RecurringLesson, TimetableDocument, day_name, time_to_minutes
from .dates import DateLike, get_monday, week_days as _week_days
from .holidays import HolidayCalendar
from .occurrences import merge_consecutive_lessons, merged_period_label

DEFAULT_TIME_RANGE = (8, 16)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class WeekLesson:
    """A recurring slot placed on a concrete date."""
    lesson: RecurringLesson
    date: date
    class_name: str
    class_size: Optional[int] = None

    @property
    def start_time(self) -> str:
        return self.lesson.start_time

    @property
    def end_time(self) -> str:
        return self.lesson.end_time


@dataclass
class WeekDuty:
    """A duty placed on a concrete date."""
    duty: Duty
    date: date


@dataclass
class RecurringPattern:
    """One merged meeting in a class's repeating cycle."""
    week_number: Optional[int]
    day_of_week: int
    start_time: str
    end_time: str
    period_label: str
    room: Optional[str] = None
    lesson_ids: list[str] = field(default_factory=list)

    @property
    def day_name(self) -> str:
        return day_name(self.day_of_week)


# =============================================================================
# Week Views
# =============================================================================

def lessons_for_week(
    document: TimetableDocument,
    days: list[date],
    week_number: Optional[int] = None,
) -> dict[int, list[WeekLesson]]:
    """
    Lessons per weekday for the given dates, sorted by start time.

    Args:
        document: Imported timetable
        days: Dates to fill (normally Monday-Friday of one week)
        week_number: Fortnight week to show; None shows every slot

    Returns:
        {day_of_week: [WeekLesson, ...]} with an entry for every weekday in `days`
    """
    by_day: dict[int, list[WeekLesson]] = {}

    for day in days:
        dow = day.isoweekday()
        if dow > 5:
            continue
        slots = [
            l for l in document.get_lessons_for_day(dow)
            if week_number is None or l.week_number in (None, week_number)
        ]
        placed = []
        for slot in slots:
            cls = document.get_class(slot.class_id)
            placed.append(WeekLesson(
                lesson=slot,
                date=day,
                class_name=cls.name if cls else slot.class_id,
                class_size=cls.class_size if cls else None,
            ))
        by_day[dow] = placed

    return by_day


def week_lessons(
    document: TimetableDocument,
    calendar: HolidayCalendar,
    day: DateLike,
) -> dict[int, list[WeekLesson]]:
    """Lessons for the week containing `day`; empty for a full holiday week."""
    monday = get_monday(day)
    if calendar.is_holiday_week(monday):
        return {}

    week_number = None
    if document.anchor_date is not None:
        week_number = calendar.week_parity(monday, document.anchor_date)

    return lessons_for_week(document, _week_days(monday), week_number)


def duties_for_week(
    document: TimetableDocument,
    calendar: HolidayCalendar,
    day: DateLike,
) -> dict[int, list[WeekDuty]]:
    """Duties per weekday for the week containing `day`, honouring the fortnight."""
    monday = get_monday(day)
    if calendar.is_holiday_week(monday):
        return {}

    week_number = None
    if document.anchor_date is not None:
        week_number = calendar.week_parity(monday, document.anchor_date)

    by_day: dict[int, list[WeekDuty]] = {}
    for offset in range(5):
        dow = offset + 1
        duties = [
            d for d in document.duties
            if d.day == dow and (week_number is None or d.week in (None, week_number))
        ]
        by_day[dow] = [
            WeekDuty(duty=d, date=monday + timedelta(days=offset))
            for d in sorted(duties, key=lambda d: time_to_minutes(d.start_time))
        ]
    return by_day


def time_range(document: TimetableDocument) -> tuple[int, int]:
    """(start_hour, end_hour) spanning every lesson, rounded outwards to whole hours."""
    if not document.recurring_lessons:
        return DEFAULT_TIME_RANGE

    earliest = min(l.start_minutes for l in document.recurring_lessons)
    latest = max(l.end_minutes for l in document.recurring_lessons)
    return earliest // 60, -(-latest // 60)


# =============================================================================
# Class Views
# =============================================================================

def class_recurring_schedule(document: TimetableDocument, class_id: str) -> list[RecurringPattern]:
    """The class's cycle (week, day, time order) with back-to-back slots merged."""
    slots = document.get_class_lessons(class_id)
    groups: dict[tuple[int, int], list[RecurringLesson]] = {}
    for slot in slots:
        groups.setdefault((slot.week_number or 0, slot.day_of_week), []).append(slot)

    patterns: list[RecurringPattern] = []
    for (week, dow) in sorted(groups):
        for run in merge_consecutive_lessons(groups[(week, dow)]):
            patterns.append(RecurringPattern(
                week_number=week or None,
                day_of_week=dow,
                start_time=run[0].start_time,
                end_time=run[-1].end_time,
                period_label=merged_period_label(run),
                room=run[0].room,
                lesson_ids=[s.id for s in run],
            ))
    return patterns


def class_rooms(document: TimetableDocument, class_id: str) -> list[str]:
    """Distinct rooms the class is taught in, in first-seen order."""
    rooms: list[str] = []
    for slot in document.get_class_lessons(class_id):
        if slot.room and slot.room not in rooms:
            rooms.append(slot.room)
    return rooms


def lessons_per_cycle(document: TimetableDocument, class_id: str) -> int:
    """Slots per week (or per fortnight for a two-week timetable), before merging."""
    return len(document.get_class_lessons(class_id))
