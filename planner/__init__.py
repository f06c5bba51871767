"""Lesson Planner - recurring timetable projection and lesson content sequencing."""

from .data.models import TimetableDocument, LessonContentEntry
from .timetable import HolidayCalendar, OccurrenceGenerator, Occurrence
from .sequence import LessonContentSequence, SequenceScheduleBinding
from .remapping import RemapConflictError, RemappingEngine, migrate_legacy_instances
from .store import MemoryStore, JsonFileStore

__all__ = [
    # Document
    "TimetableDocument",
    "LessonContentEntry",
    # Calendar
    "HolidayCalendar",
    "OccurrenceGenerator",
    "Occurrence",
    # Sequences
    "LessonContentSequence",
    "SequenceScheduleBinding",
    "RemappingEngine",
    "RemapConflictError",
    "migrate_legacy_instances",
    # Storage
    "MemoryStore",
    "JsonFileStore",
]
