"""
Demo timetable for trying the planner without an export file.

Usage:
    from planner.data.generator import generate_demo_timetable

    document = generate_demo_timetable()
    fortnightly = generate_demo_timetable(two_week=True)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

from .models import TimetableDocument


# =============================================================================
# Demo Data
# =============================================================================

DEMO_TEACHER = {"name": "Ms. Thompson", "exportDate": "2026-01-21"}

DEMO_CLASSES = [
    {"id": "12G2", "name": "12G2", "subject": "Physics", "classSize": 24},
    {"id": "10X1", "name": "10X1", "subject": "Physics", "classSize": 30},
    {"id": "13A1", "name": "13A1", "subject": "Physics", "classSize": 18},
    {"id": "9B3", "name": "9B3", "subject": "Physics", "classSize": 32},
    {"id": "11T4", "name": "11T4", "subject": "Physics", "classSize": 28},
]

# (id, day, start, end, class, room, period)
DEMO_LESSONS = [
    ("mon-1-10X1", 1, "08:45", "09:45", "10X1", "C304 Lab", "1"),
    ("mon-3a-12G2", 1, "11:30", "12:00", "12G2", "C304 Classroom", "3a"),
    ("mon-4-9B3", 1, "13:30", "14:30", "9B3", "C201 Lab", "4"),
    ("tue-1-13A1", 2, "08:45", "09:45", "13A1", "C304 Classroom", "1"),
    ("tue-2-11T4", 2, "10:00", "11:00", "11T4", "C201 Lab", "2"),
    ("tue-4-12G2", 2, "13:30", "14:30", "12G2", "C304 Lab", "4"),
    ("wed-2-10X1", 3, "10:00", "11:00", "10X1", "C304 Lab", "2"),
    ("wed-3-9B3", 3, "11:30", "12:30", "9B3", "C201 Lab", "3"),
    ("wed-5-13A1", 3, "14:45", "15:45", "13A1", "C304 Classroom", "5"),
    ("thu-1-11T4", 4, "08:45", "09:45", "11T4", "C201 Lab", "1"),
    ("thu-3-12G2", 4, "11:30", "12:30", "12G2", "C304 Classroom", "3"),
    ("fri-2-10X1", 5, "10:00", "11:00", "10X1", "C304 Lab", "2"),
    ("fri-3-9B3", 5, "11:30", "12:30", "9B3", "C201 Lab", "3"),
    ("fri-4-13A1", 5, "13:30", "14:30", "13A1", "C304 Classroom", "4"),
]

DEMO_DUTIES = [
    {"day": 2, "period": "Break", "activity": "Science corridor", "startTime": "11:00", "endTime": "11:30"},
    {"day": 4, "period": "Lunch", "activity": "Canteen", "startTime": "12:30", "endTime": "13:30"},
]


# =============================================================================
# Generation
# =============================================================================

def _lesson_record(row: tuple, week_number: int | None = None) -> dict[str, Any]:
    lesson_id, day, start, end, class_id, room, period = row
    record = {
        "id": lesson_id if week_number in (None, 1) else f"{lesson_id}-w{week_number}",
        "dayOfWeek": day,
        "startTime": start,
        "endTime": end,
        "classId": class_id,
        "subject": "Physics",
        "room": room,
        "period": period,
    }
    if week_number is not None:
        record["weekNumber"] = week_number
    return record


def demo_timetable_data(two_week: bool = False) -> dict[str, Any]:
    """
    Raw export dictionary for the demo timetable.

    Args:
        two_week: If True, produce a fortnightly timetable where both weeks
            repeat the same lessons and the Thursday duty is week 1 only

    Returns:
        A dictionary in the export format
    """
    if two_week:
        lessons = [_lesson_record(row, week) for week in (1, 2) for row in DEMO_LESSONS]
        duties = [dict(DEMO_DUTIES[0]), {**DEMO_DUTIES[1], "week": 1}]
    else:
        lessons = [_lesson_record(row) for row in DEMO_LESSONS]
        duties = [dict(d) for d in DEMO_DUTIES]

    return {
        "teacher": dict(DEMO_TEACHER),
        "twoWeekTimetable": two_week,
        "classes": [dict(c) for c in DEMO_CLASSES],
        "recurringLessons": lessons,
        "duties": duties,
    }


def generate_demo_timetable(two_week: bool = False) -> TimetableDocument:
    """Ms. Thompson's physics timetable as a validated document."""
    return TimetableDocument.model_validate(demo_timetable_data(two_week))


def save_demo_timetable(filepath: Union[str, Path], two_week: bool = False) -> Path:
    """
    Write the demo timetable to a JSON file.

    Args:
        filepath: Destination; parent directories are created
        two_week: Write the fortnightly variant

    Returns:
        The path written
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(demo_timetable_data(two_week), f, indent=2)
    return path
