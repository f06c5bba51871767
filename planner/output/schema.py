"""
Output schema for exported class plans.

This module defines the JSON-serializable export format: each occurrence
of a class within the horizon, with the sequence entry bound to it.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..data.models import LessonContentEntry, LessonLink, TimetableDocument
from ..sequence.binding import SequenceScheduleBinding
from ..timetable.occurrences import DEFAULT_HORIZON_WEEKS, Occurrence
from .metrics import SequenceProgress, calculate_progress


# =============================================================================
# Occurrence Output
# =============================================================================

class OccurrenceOutput(BaseModel):
    """A single projected meeting of a class."""
    occurrence_num: int = Field(alias="occurrenceNum")
    date: str  # 'YYYY-MM-DD'
    day_of_week: int = Field(alias="dayOfWeek")
    week_number: Optional[int] = Field(default=None, alias="weekNumber")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    period: str
    room: Optional[str] = None

    model_config = {"populate_by_name": True}

    @classmethod
    def from_occurrence(cls, occ: Occurrence) -> OccurrenceOutput:
        return cls(
            occurrenceNum=occ.occurrence_num,
            date=occ.date_iso,
            dayOfWeek=occ.day_of_week,
            weekNumber=occ.week_number,
            startTime=occ.start_time,
            endTime=occ.end_time,
            period=occ.period_label,
            room=occ.room,
        )


# =============================================================================
# Planned Lesson Output
# =============================================================================

class PlannedLessonOutput(BaseModel):
    """An occurrence with the content bound to it (None when unplanned)."""
    occurrence: OccurrenceOutput
    lesson_id: Optional[str] = Field(default=None, alias="lessonId")
    order: Optional[int] = None
    title: Optional[str] = None
    notes: Optional[str] = None
    links: list[LessonLink] = Field(default_factory=list)
    topic_name: Optional[str] = Field(default=None, alias="topicName")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_binding(cls, occ: Occurrence, entry: Optional[LessonContentEntry]) -> PlannedLessonOutput:
        if entry is None:
            return cls(occurrence=OccurrenceOutput.from_occurrence(occ))
        return cls(
            occurrence=OccurrenceOutput.from_occurrence(occ),
            lessonId=entry.id,
            order=entry.order,
            title=entry.title,
            notes=entry.notes,
            links=entry.links,
            topicName=entry.topic_name,
        )


# =============================================================================
# Complete Output
# =============================================================================

class ClassPlanOutput(BaseModel):
    """Complete export for one class."""
    class_id: str = Field(alias="classId")
    class_name: str = Field(alias="className")
    start_index: int = Field(alias="startIndex")
    horizon_weeks: int = Field(alias="horizonWeeks")
    progress: dict[str, Any] = Field(default_factory=dict)
    lessons: list[PlannedLessonOutput]
    unscheduled: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Conversion Functions
# =============================================================================

def create_class_plan(
    document: TimetableDocument,
    binding: SequenceScheduleBinding,
    class_id: str,
    horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
) -> ClassPlanOutput:
    """
    Build the export for one class.

    Args:
        document: The timetable
        binding: Binding with an OccurrenceGenerator attached
        class_id: Class to export
        horizon_weeks: Projection horizon

    Returns:
        ClassPlanOutput with one entry per occurrence; sequence entries that
        fall beyond the horizon are listed by ID under `unscheduled`
    """
    if binding.generator is None:
        raise RuntimeError("create_class_plan needs a binding with an OccurrenceGenerator")

    occurrences = binding.generator.generate(class_id, horizon_weeks)
    entries = binding.sequence.get(class_id)
    start = binding.start_index(class_id)

    lessons = []
    for occ in occurrences:
        position = occ.occurrence_num - start
        entry = entries[position] if 0 <= position < len(entries) else None
        lessons.append(PlannedLessonOutput.from_binding(occ, entry))

    unscheduled = [e.id for e in entries if e.order + start >= len(occurrences)]
    progress: SequenceProgress = calculate_progress(len(entries), len(entries) - len(unscheduled))

    return ClassPlanOutput(
        classId=class_id,
        className=document.class_name(class_id),
        startIndex=start,
        horizonWeeks=horizon_weeks,
        progress=progress.to_dict(),
        lessons=lessons,
        unscheduled=unscheduled,
    )
