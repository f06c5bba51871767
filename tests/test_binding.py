"""Tests for binding sequences to occurrences."""

from __future__ import annotations

from datetime import date

import pytest

from conftest import TODAY, make_document
from planner.sequence.binding import SequenceScheduleBinding
from planner.sequence.content import LessonContentSequence
from planner.sequence.ordered import SequenceOrderError
from planner.store import SCHEDULES_KEY
from planner.timetable.occurrences import OccurrenceGenerator


@pytest.fixture
def sequence(store) -> LessonContentSequence:
    seq = LessonContentSequence(store)
    for title in ("Forces", "Momentum", "Energy"):
        seq.append("12G2", {"title": title})
    return seq


@pytest.fixture
def binding(store, sequence, demo_document) -> SequenceScheduleBinding:
    generator = OccurrenceGenerator(demo_document, today=TODAY)
    return SequenceScheduleBinding(store, sequence, generator, horizon_weeks=8)


def _titles(binding: SequenceScheduleBinding, count: int) -> list:
    return [
        entry.title if entry else None
        for entry in (binding.content_for_occurrence("12G2", n) for n in range(count))
    ]


class TestContentForOccurrence:
    """Tests for occurrence -> content lookups."""

    def test_aligned(self, binding):
        assert binding.start_index("12G2") == 0
        assert _titles(binding, 4) == ["Forces", "Momentum", "Energy", None]

    def test_negative_position_is_empty(self, binding):
        binding.set_start_index("12G2", 2)
        assert _titles(binding, 5) == [None, None, "Forces", "Momentum", "Energy"]

    def test_no_sequence(self, binding):
        assert binding.content_for_occurrence("10X1", 0) is None

    def test_content_for_date(self, binding):
        # Tuesday 20 Jan 13:30 is occurrence 1
        assert binding.content_for_date("12G2", "2026-01-20", "13:30").title == "Momentum"
        assert binding.content_for_date("12G2", "2026-01-21", "13:30") is None

    def test_invalid_stored_offset_treated_as_zero(self, binding, store):
        store.set(SCHEDULES_KEY, {"12G2": {"startIndex": -4}})
        assert binding.start_index("12G2") == 0
        store.set(SCHEDULES_KEY, {"12G2": {"startIndex": "3"}})
        assert binding.start_index("12G2") == 0


class TestPushBackAndReset:
    """Tests for push_back and reset_alignment."""

    def test_push_back(self, binding):
        assert binding.push_back("12G2") == 1
        assert _titles(binding, 4) == [None, "Forces", "Momentum", "Energy"]

    def test_push_back_twice_then_reset(self, binding):
        binding.push_back("12G2")
        binding.push_back("12G2")
        assert binding.start_index("12G2") == 2
        binding.reset_alignment("12G2")
        assert _titles(binding, 3) == ["Forces", "Momentum", "Energy"]

    def test_push_back_persists(self, binding, store):
        binding.push_back("12G2")
        assert store.get(SCHEDULES_KEY) == {"12G2": {"startIndex": 1}}

    def test_push_back_only_affects_one_class(self, binding):
        binding.push_back("12G2")
        assert binding.start_index("10X1") == 0


class TestReorder:
    """Tests for reordering through the binding."""

    def test_dates_stay_with_positions(self, binding, sequence):
        ids = [e.id for e in sequence.get("12G2")]
        date_before = binding.occurrence_for_lesson("12G2", 0).date
        binding.reorder("12G2", [ids[2], ids[0], ids[1]])
        assert binding.occurrence_for_lesson("12G2", 0).date == date_before
        assert binding.content_for_occurrence("12G2", 0).title == "Energy"

    def test_reorder_rejects_partial(self, binding, sequence):
        ids = [e.id for e in sequence.get("12G2")]
        with pytest.raises(SequenceOrderError):
            binding.reorder("12G2", ids[:2])
        assert [e.title for e in sequence.get("12G2")] == ["Forces", "Momentum", "Energy"]


class TestSync:
    """Tests for sync_to_date."""

    def test_sync_shifts_sequence(self, binding):
        # First 12G2 meeting on or after Fri 23 Jan is Mon 26 Jan, occurrence 3
        assert binding.sync_to_date("12G2", 2, "2026-01-23") == 1
        assert binding.occurrence_for_lesson("12G2", 2).date == date(2026, 1, 26)
        assert binding.content_for_occurrence("12G2", 0) is None

    def test_sync_clamps_at_zero(self, binding):
        binding.push_back("12G2")
        assert binding.sync_to_date("12G2", 2, "2026-01-19") == 0

    def test_sync_beyond_horizon_is_noop(self, binding):
        binding.push_back("12G2")
        assert binding.sync_to_date("12G2", 0, "2030-01-01") is None
        assert binding.start_index("12G2") == 1

    def test_sync_negative_order(self, binding):
        with pytest.raises(ValueError):
            binding.sync_to_date("12G2", -1, "2026-01-23")

    def test_sync_needs_generator(self, store, sequence):
        with pytest.raises(RuntimeError):
            SequenceScheduleBinding(store, sequence).sync_to_date("12G2", 0, "2026-01-23")

    def test_sync_prefers_earliest_meeting(self, store):
        document = make_document([
            {"dayOfWeek": 2, "startTime": "09:00", "endTime": "10:00", "period": "1"},
            {"dayOfWeek": 2, "startTime": "14:00", "endTime": "15:00", "period": "5"},
        ])
        binding = SequenceScheduleBinding(
            store, LessonContentSequence(store), OccurrenceGenerator(document, today=TODAY)
        )
        # Tuesday 27 Jan meetings are occurrences 2 (P1) and 3 (P5)
        assert binding.sync_to_date("C1", 0, "2026-01-27") == 2
        assert binding.sync_to_date("C1", 0, "2026-01-27", start_time="14:10") == 3


class TestScheduledLessons:
    """Tests for scheduled lesson listing."""

    def test_listing(self, binding):
        items = binding.scheduled_lessons("12G2")
        assert [i.entry.title for i in items] == ["Forces", "Momentum", "Energy"]
        assert [i.date for i in items] == [date(2026, 1, 19), date(2026, 1, 20), date(2026, 1, 22)]
        assert all(i.is_scheduled for i in items)

    def test_beyond_horizon_unscheduled(self, store, sequence, demo_document):
        generator = OccurrenceGenerator(demo_document, today=TODAY)
        binding = SequenceScheduleBinding(store, sequence, generator, horizon_weeks=1)
        binding.set_start_index("12G2", 2)
        items = binding.scheduled_lessons("12G2")
        assert [i.is_scheduled for i in items] == [True, False, False]
        assert binding.occurrence_for_lesson("12G2", 1) is None

    def test_next_lesson(self, binding):
        nxt = binding.next_lesson("12G2", "2026-01-20")
        assert nxt.entry.title == "Energy"
        assert binding.next_lesson("12G2", "2026-01-22") is None
