"""Shared fixtures for planner tests."""

from __future__ import annotations

from datetime import date

import pytest

from planner.data.generator import demo_timetable_data, generate_demo_timetable
from planner.data.models import TimetableDocument
from planner.logging import setup_logging
from planner.store import MemoryStore
from planner.timetable.holidays import HolidayCalendar

# Monday of the demo export week; the export date (Wed 21 Jan) anchors week 1
TODAY = date(2026, 1, 19)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def demo_document() -> TimetableDocument:
    return generate_demo_timetable()


@pytest.fixture
def fortnight_document() -> TimetableDocument:
    return generate_demo_timetable(two_week=True)


@pytest.fixture
def demo_data() -> dict:
    return demo_timetable_data()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def half_term() -> HolidayCalendar:
    """February half term: the full week of Monday 16 February."""
    calendar = HolidayCalendar()
    calendar.add_holiday("February half term", "2026-02-16", "2026-02-20", holiday_id="half-term")
    return calendar


def make_document(lessons: list[dict], two_week: bool = False, export_date: str = "2026-01-21") -> TimetableDocument:
    """Single-class ("C1") document built from compact lesson dicts."""
    recurring = []
    for i, lesson in enumerate(lessons):
        recurring.append({"id": f"l{i}", "classId": "C1", **lesson})
    return TimetableDocument.model_validate({
        "teacher": {"name": "Mr Test", "exportDate": export_date},
        "twoWeekTimetable": two_week,
        "classes": [{"id": "C1", "name": "Class One"}],
        "recurringLessons": recurring,
    })


@pytest.fixture(autouse=True)
def quiet_logging():
    """Each test starts from the CLI's default log level."""
    setup_logging()
    yield
