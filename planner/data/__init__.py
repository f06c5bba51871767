"""Timetable document models, loading and the demo timetable."""

from .loader import (
    TimetableValidationError,
    load_timetable_document,
    validate_timetable_document,
    save_document,
    load_document,
)
from .generator import (
    demo_timetable_data,
    generate_demo_timetable,
    save_demo_timetable,
)

__all__ = [
    # Loader
    "TimetableValidationError",
    "load_timetable_document",
    "validate_timetable_document",
    "save_document",
    "load_document",
    # Generator
    "demo_timetable_data",
    "generate_demo_timetable",
    "save_demo_timetable",
]
