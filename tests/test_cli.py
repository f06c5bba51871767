"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from planner.cli import app
from planner.data.generator import demo_timetable_data
from planner.store import (
    INSTANCES_KEY,
    MIGRATIONS_KEY,
    SCHEDULES_KEY,
    SEQUENCES_KEY,
    SETTINGS_KEY,
    TIMETABLE_KEY,
    JsonFileStore,
)


runner = CliRunner()


@pytest.fixture
def store_path(tmp_path) -> Path:
    return tmp_path / "planner-data.json"


@pytest.fixture
def cli(store_path):
    """Invoke the app against a temporary store with a fixed today."""
    def invoke(*args: str):
        return runner.invoke(app, ["--store", str(store_path), "--today", "2026-01-19", *args])
    return invoke


@pytest.fixture
def loaded(cli):
    """A store with the demo timetable imported."""
    result = cli("demo")
    assert result.exit_code == 0
    return cli


@pytest.fixture
def input_file(tmp_path) -> Path:
    filepath = tmp_path / "timetable.json"
    filepath.write_text(json.dumps(demo_timetable_data()))
    return filepath


class TestHelpCommand:
    """Tests for help output."""

    def test_main_help(self):
        """Main help lists the commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("validate", "import", "week", "occurrences", "holiday", "lesson", "sync"):
            assert command in result.output

    def test_lesson_help(self):
        """Lesson sub-app lists its commands."""
        result = runner.invoke(app, ["lesson", "--help"])
        assert result.exit_code == 0
        assert "reorder" in result.output
        assert "move" in result.output


class TestValidateCommand:
    """Tests for validate command."""

    def test_valid_file(self, input_file):
        """A valid export passes all checks."""
        result = runner.invoke(app, ["validate", str(input_file)])
        assert result.exit_code == 0
        assert "Schema validation passed" in result.output
        assert "Validation complete" in result.output

    def test_fortnight_errors(self, tmp_path):
        """Missing fortnight fields are reported per field."""
        data = demo_timetable_data()
        data["twoWeekTimetable"] = True
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data))

        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Schema validation failed" in result.output
        assert "recurringLessons.0.weekNumber" in result.output

    def test_invalid_json(self, tmp_path):
        """Malformed JSON fails at the syntax step."""
        path = tmp_path / "broken.json"
        path.write_text("{nope")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_missing_file(self, tmp_path):
        """A missing file is an error."""
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestImportCommands:
    """Tests for import and demo."""

    def test_import(self, cli, input_file, store_path):
        """Import stores the document."""
        result = cli("import", str(input_file))
        assert result.exit_code == 0
        assert "Imported" in result.output
        assert JsonFileStore(store_path).get("timetableData")["teacher"]["name"] == "Ms. Thompson"

    def test_import_rejects_invalid(self, cli, tmp_path, store_path):
        """Nothing is written when validation fails."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"teacher": {"name": "X"}, "classes": []}))
        result = cli("import", str(path))
        assert result.exit_code == 1
        assert JsonFileStore(store_path).get("timetableData") is None

    def test_demo_to_file(self, cli, tmp_path):
        """Demo can be written out instead of imported."""
        out = tmp_path / "demo.json"
        result = cli("demo", "--two-week", "--output", str(out))
        assert result.exit_code == 0
        assert json.loads(out.read_text())["twoWeekTimetable"] is True

    def test_no_timetable(self, cli):
        """Commands needing a timetable fail cleanly."""
        result = cli("occurrences", "12G2")
        assert result.exit_code == 1
        assert "No timetable loaded" in result.output

    def test_invalid_today(self, store_path):
        """A bad --today is rejected."""
        result = runner.invoke(app, ["--store", str(store_path), "--today", "soon", "holiday", "list"])
        assert result.exit_code == 1
        assert "Invalid --today" in result.output


class TestViewCommands:
    """Tests for week and occurrences."""

    def test_week(self, loaded):
        """The week view lists the week's classes."""
        result = loaded("week")
        assert result.exit_code == 0
        assert "12G2" in result.output
        assert "13A1" in result.output

    def test_holiday_week(self, loaded):
        """A full holiday week shows no lessons."""
        loaded("holiday", "add", "Half term", "2026-02-16", "2026-02-20")
        result = loaded("week", "--date", "2026-02-18")
        assert result.exit_code == 0
        assert "no lessons this week" in result.output

    def test_occurrences(self, loaded):
        """Occurrences are listed with dates."""
        result = loaded("occurrences", "12G2", "--weeks", "1")
        assert result.exit_code == 0
        assert "2026-01-19" in result.output
        assert "2026-01-22" in result.output

    def test_unknown_class(self, loaded):
        """An unknown class is an error."""
        result = loaded("occurrences", "ZZ9")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestLessonCommands:
    """Tests for the lesson sub-app."""

    def _ids(self, store_path: Path) -> list[str]:
        return [r["id"] for r in JsonFileStore(store_path).get(SEQUENCES_KEY)["12G2"]]

    def test_add_and_list(self, loaded, store_path):
        """Added lessons appear in order with dates."""
        assert loaded("lesson", "add", "12G2", "--title", "Forces").exit_code == 0
        assert loaded("lesson", "add", "12G2", "--title", "Momentum", "--link", "https://example.org").exit_code == 0

        result = loaded("lesson", "list", "12G2")
        assert result.exit_code == 0
        assert "Forces" in result.output
        assert "Momentum" in result.output
        assert "2026-01-19" in result.output

        records = JsonFileStore(store_path).get(SEQUENCES_KEY)["12G2"]
        assert [r["title"] for r in records] == ["Forces", "Momentum"]
        assert records[1]["links"][0]["url"] == "https://example.org"

    def test_edit(self, loaded, store_path):
        """Edit changes content only."""
        loaded("lesson", "add", "12G2", "--title", "Forces")
        lesson_id = self._ids(store_path)[0]
        result = loaded("lesson", "edit", "12G2", lesson_id, "--notes", "Trolleys")
        assert result.exit_code == 0
        record = JsonFileStore(store_path).get(SEQUENCES_KEY)["12G2"][0]
        assert record["notes"] == "Trolleys"
        assert record["title"] == "Forces"

    def test_edit_unknown(self, loaded):
        """Editing an unknown lesson fails."""
        result = loaded("lesson", "edit", "12G2", "missing", "--title", "x")
        assert result.exit_code == 1

    def test_reorder_and_move(self, loaded, store_path):
        """Reorder takes a full permutation; move shifts one lesson."""
        for title in ("A", "B", "C"):
            loaded("lesson", "add", "12G2", "--title", title)
        a, b, c = self._ids(store_path)

        assert loaded("lesson", "reorder", "12G2", c, a, b).exit_code == 0
        assert self._ids(store_path) == [c, a, b]

        assert loaded("lesson", "move", "12G2", c, "2").exit_code == 0
        assert self._ids(store_path) == [a, b, c]

    def test_partial_reorder_rejected(self, loaded, store_path):
        """A partial reorder changes nothing."""
        for title in ("A", "B"):
            loaded("lesson", "add", "12G2", "--title", title)
        ids = self._ids(store_path)
        result = loaded("lesson", "reorder", "12G2", ids[1])
        assert result.exit_code == 1
        assert "not a permutation" in result.output
        assert self._ids(store_path) == ids

    def test_delete(self, loaded, store_path):
        """Delete removes the lesson."""
        loaded("lesson", "add", "12G2", "--title", "A")
        lesson_id = self._ids(store_path)[0]
        assert loaded("lesson", "delete", "12G2", lesson_id).exit_code == 0
        assert self._ids(store_path) == []


class TestAlignmentCommands:
    """Tests for push-back, reset and sync."""

    def _start(self, store_path: Path) -> int:
        return JsonFileStore(store_path).get(SCHEDULES_KEY)["12G2"]["startIndex"]

    def test_push_back_and_reset(self, loaded, store_path):
        """Push back increments the offset; reset clears it."""
        result = loaded("push-back", "12G2")
        assert result.exit_code == 0
        assert "start index is now 1" in result.output
        assert self._start(store_path) == 1

        assert loaded("reset", "12G2").exit_code == 0
        assert self._start(store_path) == 0

    def test_sync(self, loaded, store_path):
        """Sync moves lesson 0 to the first meeting on or after the date."""
        result = loaded("sync", "12G2", "0", "2026-01-26")
        assert result.exit_code == 0
        assert self._start(store_path) == 3

    def test_sync_beyond_horizon(self, loaded):
        """Sync with no meeting in range changes nothing."""
        result = loaded("sync", "12G2", "0", "2031-01-01")
        assert result.exit_code == 0
        assert "nothing changed" in result.output


class TestHolidayCommands:
    """Tests for the holiday sub-app."""

    def test_add_list_remove(self, cli, store_path):
        """Holidays round-trip through settings."""
        result = cli("holiday", "add", "Half term", "2026-02-16", "2026-02-20")
        assert result.exit_code == 0
        assert "1 full week" in result.output

        holidays = JsonFileStore(store_path).get(SETTINGS_KEY)["holidays"]
        assert holidays[0]["weekMondays"] == ["2026-02-16"]

        listed = cli("holiday", "list")
        assert "Half term" in listed.output

        assert cli("holiday", "remove", holidays[0]["id"]).exit_code == 0
        assert JsonFileStore(store_path).get(SETTINGS_KEY)["holidays"] == []

    def test_reversed_range(self, cli):
        """End before start is rejected."""
        result = cli("holiday", "add", "Bad", "2026-02-20", "2026-02-16")
        assert result.exit_code == 1

    def test_remove_unknown(self, cli):
        """Removing an unknown holiday fails."""
        assert cli("holiday", "remove", "nope").exit_code == 1

    def test_add_moves_saved_records(self, loaded, store_path):
        """Date-keyed records follow their lessons past a new holiday."""
        JsonFileStore(store_path).set(INSTANCES_KEY, {"12G2::2026-02-16": {"title": "Waves"}})
        result = loaded("holiday", "add", "Half term", "2026-02-16", "2026-02-20")
        assert result.exit_code == 0
        assert JsonFileStore(store_path).get(INSTANCES_KEY) == {"12G2::2026-02-23": {"title": "Waves"}}

    def test_add_with_unreadable_timetable(self, cli, store_path):
        """A stored timetable that no longer validates stops the change cleanly."""
        JsonFileStore(store_path).set(TIMETABLE_KEY, {"teacher": {"name": "X"}, "classes": []})
        result = cli("holiday", "add", "Half term", "2026-02-16", "2026-02-20")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert (JsonFileStore(store_path).get(SETTINGS_KEY) or {}).get("holidays", []) == []

    def test_remove_refused_when_records_collide(self, loaded, store_path):
        """Neither holidays nor records change when a moved record would overwrite another."""
        loaded("holiday", "add", "Half term", "2026-02-16", "2026-02-20")
        holiday_id = JsonFileStore(store_path).get(SETTINGS_KEY)["holidays"][0]["id"]
        instances = {
            "12G2::2026-02-16": {"title": "written in the holiday"},
            "12G2::2026-02-23": {"title": "Waves"},
        }
        JsonFileStore(store_path).set(INSTANCES_KEY, instances)

        result = loaded("holiday", "remove", holiday_id)
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert len(JsonFileStore(store_path).get(SETTINGS_KEY)["holidays"]) == 1
        assert JsonFileStore(store_path).get(INSTANCES_KEY) == instances


class TestMigrateAndExport:
    """Tests for migrate and export."""

    def test_migrate_once(self, cli, store_path):
        """Legacy records become a sequence once."""
        JsonFileStore(store_path).set(INSTANCES_KEY, {"12G2::2026-01-19": {"title": "Forces"}})
        result = cli("migrate")
        assert "Migration complete" in result.output
        assert JsonFileStore(store_path).get(SEQUENCES_KEY)["12G2"][0]["title"] == "Forces"
        assert JsonFileStore(store_path).get(MIGRATIONS_KEY)

        again = cli("migrate")
        assert "Nothing to migrate" in again.output

    def test_export(self, loaded, tmp_path):
        """Export writes the class plan as JSON."""
        loaded("lesson", "add", "12G2", "--title", "Forces")
        out = tmp_path / "plan.json"
        result = loaded("export", "12G2", "--weeks", "1", "--output", str(out))
        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["classId"] == "12G2"
        assert data["lessons"][0]["title"] == "Forces"
        assert len(data["lessons"]) == 3
