"""Tests for timetable loading and validation."""

from __future__ import annotations

import json

import pytest

from planner.data.loader import (
    TimetableValidationError,
    load_document,
    load_timetable_document,
    save_document,
    validate_timetable_document,
)
from planner.store import TIMETABLE_KEY


class TestValidateTimetableDocument:
    """Tests for validate_timetable_document."""

    def test_valid_document(self, demo_data):
        document = validate_timetable_document(demo_data)
        assert document.teacher.name == "Ms. Thompson"

    def test_not_an_object(self):
        with pytest.raises(TimetableValidationError) as exc_info:
            validate_timetable_document([1, 2, 3])
        assert exc_info.value.errors == ["Invalid JSON: not an object"]

    def test_missing_sections_listed(self):
        with pytest.raises(TimetableValidationError) as exc_info:
            validate_timetable_document({"recurringLessons": []})
        errors = exc_info.value.errors
        assert any(e.startswith("teacher") for e in errors)
        assert any(e.startswith("classes") for e in errors)

    def test_field_paths_in_errors(self, demo_data):
        demo_data["recurringLessons"][2]["startTime"] = "noon"
        with pytest.raises(TimetableValidationError) as exc_info:
            validate_timetable_document(demo_data)
        assert any(e.startswith("recurringLessons.2.startTime") for e in exc_info.value.errors)

    def test_fortnight_errors_flattened(self, demo_data):
        demo_data["twoWeekTimetable"] = True
        del demo_data["teacher"]["exportDate"]
        with pytest.raises(TimetableValidationError) as exc_info:
            validate_timetable_document(demo_data)
        errors = exc_info.value.errors
        assert "teacher.exportDate: required when twoWeekTimetable is true" in errors
        assert len(errors) == 1 + len(demo_data["recurringLessons"])

    def test_message_joins_errors(self):
        error = TimetableValidationError(["a: bad", "b: worse"])
        assert str(error) == "a: bad; b: worse"


class TestLoadTimetableDocument:
    """Tests for loading from files and the store."""

    def test_load_from_file(self, demo_data, tmp_path):
        path = tmp_path / "timetable.json"
        path.write_text(json.dumps(demo_data))
        document = load_timetable_document(path)
        assert len(document.recurring_lessons) == 14

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_timetable_document(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_timetable_document(path)

    def test_store_round_trip(self, store, demo_document):
        assert load_document(store) is None
        save_document(store, demo_document)
        assert store.get(TIMETABLE_KEY)["teacher"]["name"] == "Ms. Thompson"
        assert load_document(store).recurring_lessons == demo_document.recurring_lessons
