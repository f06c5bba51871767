"""
Binding between a class's content sequence and its projected occurrences.

Each class has a single offset, `startIndex`: the number of leading
occurrences left without content. The lesson at sequence position k is
taught at occurrence k + startIndex, so occurrence n shows the lesson at
position n - startIndex, or nothing when that position is out of range.

There is no per-lesson pinning. Pushing back, resetting or syncing one
lesson moves the whole sequence by the same amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..data.models import ClassSchedule, LessonContentEntry, time_to_minutes
from ..logging import get_logger
from ..store import SCHEDULES_KEY, KeyValueStore
from ..timetable.dates import DateLike, parse_date
from ..timetable.occurrences import DEFAULT_HORIZON_WEEKS, Occurrence, OccurrenceGenerator
from .content import LessonContentSequence

logger = get_logger(__name__)


@dataclass
class ScheduledLesson:
    """A sequence entry with the occurrence it is bound to, if any."""
    entry: LessonContentEntry
    occurrence: Optional[Occurrence]

    @property
    def is_scheduled(self) -> bool:
        return self.occurrence is not None

    @property
    def date(self) -> Optional[date]:
        return self.occurrence.date if self.occurrence else None


class SequenceScheduleBinding:
    """
    Maps occurrence numbers to sequence entries through one offset per class.

    Args:
        store: Backing store (lessonSchedules key)
        sequence: The content sequences
        generator: Occurrence projection; needed for date-based operations
        horizon_weeks: Projection horizon for date-based operations
    """

    def __init__(
        self,
        store: KeyValueStore,
        sequence: LessonContentSequence,
        generator: Optional[OccurrenceGenerator] = None,
        horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
    ):
        self.store = store
        self.sequence = sequence
        self.generator = generator
        self.horizon_weeks = horizon_weeks

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load_all(self) -> dict[str, Any]:
        return self.store.get(SCHEDULES_KEY) or {}

    def get_schedule(self, class_id: str) -> ClassSchedule:
        record = self._load_all().get(class_id) or {}
        start = record.get("startIndex", 0)
        # A corrupt negative or non-integer offset falls back to aligned
        if not isinstance(start, int) or start < 0:
            logger.warning("binding_offset_invalid", class_id=class_id, start_index=start)
            start = 0
        return ClassSchedule(start_index=start)

    def start_index(self, class_id: str) -> int:
        return self.get_schedule(class_id).start_index

    def set_start_index(self, class_id: str, start_index: int) -> int:
        schedule = ClassSchedule(start_index=start_index)
        all_schedules = self._load_all()
        all_schedules[class_id] = schedule.to_record()
        self.store.set(SCHEDULES_KEY, all_schedules)
        return schedule.start_index

    def _occurrences(self, class_id: str) -> list[Occurrence]:
        if self.generator is None:
            raise RuntimeError("This operation needs an OccurrenceGenerator")
        return self.generator.generate(class_id, self.horizon_weeks)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def content_for_occurrence(self, class_id: str, occurrence_num: int) -> Optional[LessonContentEntry]:
        """Content bound to an occurrence, or None if that occurrence is unscheduled."""
        position = occurrence_num - self.start_index(class_id)
        return self.sequence.at(class_id, position)

    def occurrence_number_for_lesson(self, class_id: str, lesson_order: int) -> int:
        return lesson_order + self.start_index(class_id)

    def occurrence_for_lesson(self, class_id: str, lesson_order: int) -> Optional[Occurrence]:
        """The occurrence a sequence position is bound to, or None beyond the horizon."""
        number = self.occurrence_number_for_lesson(class_id, lesson_order)
        occurrences = self._occurrences(class_id)
        if 0 <= number < len(occurrences):
            return occurrences[number]
        return None

    def content_for_date(self, class_id: str, day: DateLike, start_time: str) -> Optional[LessonContentEntry]:
        """Content for the meeting on `day` whose slot starts at `start_time`."""
        if self.generator is None:
            raise RuntimeError("This operation needs an OccurrenceGenerator")
        number = self.generator.find_occurrence_for_date(class_id, day, start_time, self.horizon_weeks)
        if number is None:
            return None
        return self.content_for_occurrence(class_id, number)

    def scheduled_lessons(self, class_id: str) -> list[ScheduledLesson]:
        """Every entry in order with its occurrence (None when beyond the horizon)."""
        start = self.start_index(class_id)
        occurrences = self._occurrences(class_id)
        result = []
        for entry in self.sequence.get(class_id):
            number = entry.order + start
            occ = occurrences[number] if number < len(occurrences) else None
            result.append(ScheduledLesson(entry, occ))
        return result

    def next_lesson(self, class_id: str, after: DateLike) -> Optional[ScheduledLesson]:
        """The first bound lesson taught strictly after `after`."""
        cutoff = parse_date(after)
        for item in self.scheduled_lessons(class_id):
            if item.occurrence is not None and item.occurrence.date > cutoff:
                return item
        return None

    # -------------------------------------------------------------------------
    # Alignment
    # -------------------------------------------------------------------------

    def push_back(self, class_id: str) -> int:
        """
        Delay every lesson by one occurrence.

        Used when an unplanned event takes a timetable slot: occurrence 0
        loses its content and each lesson moves to the next meeting.
        """
        new_start = self.set_start_index(class_id, self.start_index(class_id) + 1)
        logger.info("binding_pushed_back", class_id=class_id, start_index=new_start)
        return new_start

    def reset_alignment(self, class_id: str) -> int:
        """Bind the first lesson to the first occurrence again."""
        self.set_start_index(class_id, 0)
        logger.info("binding_reset", class_id=class_id)
        return 0

    def reorder(self, class_id: str, new_id_order: list[str]) -> list[LessonContentEntry]:
        """Reorder the sequence; the offset is unchanged, so positions keep their dates."""
        return self.sequence.reorder(class_id, new_id_order)

    def sync_to_date(
        self,
        class_id: str,
        lesson_order: int,
        target_date: DateLike,
        start_time: Optional[str] = None,
    ) -> Optional[int]:
        """
        Re-anchor the class so lesson `lesson_order` lands on the first meeting on/after `target_date`.

        The whole sequence shifts with it. When the class meets more than once
        on that first date, the earliest meeting is used unless `start_time`
        is given, in which case the meeting nearest that time of day wins.

        Args:
            class_id: Class to re-anchor
            lesson_order: Sequence position that should land on the date
            target_date: Earliest acceptable date
            start_time: Optional "HH:MM" to choose between same-day meetings

        Returns:
            The new start index, or None (nothing changed) if the class has no
            meeting on or after the date within the horizon
        """
        if lesson_order < 0:
            raise ValueError(f"lesson_order must be >= 0, got {lesson_order}")
        if self.generator is None:
            raise RuntimeError("This operation needs an OccurrenceGenerator")

        candidates = self.generator.first_on_or_after(class_id, target_date, self.horizon_weeks)
        if not candidates:
            logger.info("binding_sync_skipped", class_id=class_id, target=str(target_date))
            return None

        target = candidates[0]
        if start_time is not None:
            wanted = time_to_minutes(start_time)
            target = min(candidates, key=lambda occ: _distance_to(occ, wanted))

        new_start = self.set_start_index(class_id, max(0, target.occurrence_num - lesson_order))
        logger.info(
            "binding_synced",
            class_id=class_id,
            lesson_order=lesson_order,
            occurrence=target.occurrence_num,
            date=target.date_iso,
            start_index=new_start,
        )
        return new_start


def _distance_to(occ: Occurrence, minutes: int) -> int:
    return min(abs(time_to_minutes(t) - minutes) for t in occ.slot_start_times or (occ.start_time,))
