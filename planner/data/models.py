"""
Pydantic models for the lesson planner data model.

The imported timetable document uses camelCase keys (it is exported by the
school's MIS tooling); models accept both camelCase and snake_case.

Time conventions:
- Wall-clock times are "HH:MM" strings (24h)
- Days of week are 1-5 (Monday-Friday)
- Fortnightly timetables tag each slot with week 1 or week 2

Example:
    {
      "teacher": {"name": "Ms. Thompson", "exportDate": "2026-01-21"},
      "twoWeekTimetable": true,
      "classes": [{"id": "12G2", "name": "12G2", "subject": "Physics"}],
      "recurringLessons": [
        {"id": "mon-3a", "dayOfWeek": 1, "weekNumber": 1, "startTime": "11:30",
         "endTime": "12:00", "classId": "12G2", "period": "3a"}
      ]
    }
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# Constants and Type Aliases
# =============================================================================

TIME_PATTERN = r"^\d{2}:\d{2}$"

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

TimeString = Annotated[str, Field(pattern=TIME_PATTERN, description="Wall-clock time as HH:MM")]
WeekdayNumber = Annotated[int, Field(ge=1, le=5, description="Day of week (1=Monday, 5=Friday)")]
WeekNumber = Literal[1, 2]


# =============================================================================
# Helper Functions
# =============================================================================

def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    h, m = map(int, time_str.split(":"))
    return h * 60 + m


def day_name(day: int) -> str:
    """Get day name from a 1-based weekday number."""
    return DAY_NAMES[day - 1] if 1 <= day <= 5 else f"Day {day}"


class _DocumentModel(BaseModel):
    """Base for models read from the imported timetable document."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Timetable Document Models
# =============================================================================

class TeacherInfo(_DocumentModel):
    """The teacher who owns the timetable."""

    name: str = Field(min_length=1, description="Teacher display name")
    export_date: Optional[date] = Field(
        default=None,
        description="Date of export; anchors week 1 of a fortnightly timetable",
    )


class ClassInfo(_DocumentModel):
    """A taught class (student group)."""

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Class name (e.g., '12G2')")
    subject: Optional[str] = Field(default=None, description="Subject taught")
    class_size: Optional[int] = Field(default=None, ge=1, description="Number of students")
    timetable_code: Optional[str] = Field(default=None, description="MIS timetable code")
    notes: Optional[str] = Field(default=None, description="Free-form notes")

    def __str__(self) -> str:
        return self.name


class RecurringLesson(_DocumentModel):
    """
    A recurring weekly slot for one class.

    Immutable once imported; every occurrence computation reads it.
    """

    id: str = Field(min_length=1, description="Unique identifier")
    day_of_week: WeekdayNumber
    week_number: Optional[WeekNumber] = Field(
        default=None,
        description="Fortnight week (1 or 2); required for two-week timetables",
    )
    start_time: TimeString
    end_time: TimeString
    class_id: str = Field(min_length=1, description="Class ID")
    subject: Optional[str] = Field(default=None, description="Subject name")
    room: Optional[str] = Field(default=None, description="Room name")
    period: str = Field(description="Display period label (e.g., '3a')")

    @field_validator("period", mode="before")
    @classmethod
    def coerce_period(cls, value: Any) -> Any:
        """Exports sometimes carry numeric period labels."""
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def __str__(self) -> str:
        week = f" (week {self.week_number})" if self.week_number else ""
        return (
            f"{self.class_id} P{self.period} {day_name(self.day_of_week)} "
            f"{self.start_time}-{self.end_time}{week}"
        )


class Duty(_DocumentModel):
    """A non-teaching duty (break duty, detention, ...)."""

    week: Optional[WeekNumber] = Field(default=None, description="Fortnight week, if any")
    day: WeekdayNumber
    period: str = Field(description="Period label")
    activity: str = Field(description="What the duty is")
    start_time: TimeString
    end_time: TimeString

    @field_validator("period", mode="before")
    @classmethod
    def coerce_period(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


# =============================================================================
# Main Document Model
# =============================================================================

class TimetableDocument(_DocumentModel):
    """
    Complete imported timetable.
    This is the main model for loading and validating timetable data.
    """

    teacher: TeacherInfo
    two_week_timetable: bool = Field(default=False, description="Alternating week 1 / week 2 layout")
    classes: list[ClassInfo] = Field(min_length=1, description="Taught classes")
    recurring_lessons: list[RecurringLesson] = Field(default_factory=list, description="Weekly slots")
    duties: list[Duty] = Field(default_factory=list, description="Recurring duties")

    # Lookup caches (populated after validation)
    _class_map: dict[str, ClassInfo] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._class_map = {c.id: c for c in self.classes}

    @model_validator(mode="after")
    def validate_fortnight_fields(self) -> "TimetableDocument":
        """A two-week timetable needs an anchor date and a week on every slot."""
        if not self.two_week_timetable:
            return self

        errors: list[str] = []
        if self.teacher.export_date is None:
            errors.append("teacher.exportDate: required when twoWeekTimetable is true")

        for i, lesson in enumerate(self.recurring_lessons):
            if lesson.week_number is None:
                errors.append(
                    f"recurringLessons.{i}.weekNumber: required when twoWeekTimetable is true"
                )

        if errors:
            raise ValueError("Fortnight validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "TimetableDocument":
        """Ensure no duplicate IDs within classes and recurring lessons."""
        errors: list[str] = []

        def check_duplicates(items: list, field_name: str) -> None:
            seen: set[str] = set()
            for i, item in enumerate(items):
                if item.id in seen:
                    errors.append(f"{field_name}.{i}.id: duplicate ID '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.classes, "classes")
        check_duplicates(self.recurring_lessons, "recurringLessons")

        if errors:
            raise ValueError("Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    @property
    def anchor_date(self) -> Optional[date]:
        """Week-1 anchor for parity, or None for a weekly timetable."""
        if not self.two_week_timetable:
            return None
        return self.teacher.export_date

    @property
    def class_ids(self) -> list[str]:
        return [c.id for c in self.classes]

    def get_class(self, class_id: str) -> Optional[ClassInfo]:
        """Get class by ID."""
        return self._class_map.get(class_id)

    def class_name(self, class_id: str) -> str:
        cls = self.get_class(class_id)
        return cls.name if cls else class_id

    def get_class_lessons(self, class_id: str) -> list[RecurringLesson]:
        """Get all recurring slots for a class."""
        return [l for l in self.recurring_lessons if l.class_id == class_id]

    def get_lessons_for_day(self, day_of_week: int) -> list[RecurringLesson]:
        """Get all slots on a weekday, sorted by start time."""
        return sorted(
            [l for l in self.recurring_lessons if l.day_of_week == day_of_week],
            key=lambda l: l.start_minutes,
        )

    # -------------------------------------------------------------------------
    # Consistency Checks
    # -------------------------------------------------------------------------

    def consistency_warnings(self) -> list[str]:
        """Problems that do not block an import but leave slots that never fire."""
        warnings: list[str] = []
        known = set(self.class_ids)

        for i, lesson in enumerate(self.recurring_lessons):
            if lesson.class_id not in known:
                warnings.append(
                    f"recurringLessons.{i}: unknown classId '{lesson.class_id}'"
                )
            if lesson.start_minutes >= lesson.end_minutes:
                warnings.append(
                    f"recurringLessons.{i}: startTime {lesson.start_time} is not before "
                    f"endTime {lesson.end_time}"
                )
            if not self.two_week_timetable and lesson.week_number is not None:
                warnings.append(
                    f"recurringLessons.{i}: weekNumber is ignored for a weekly timetable"
                )

        for cls in self.classes:
            if not self.get_class_lessons(cls.id):
                warnings.append(f"Class '{cls.name}' has no recurring lessons")

        return warnings

    def summary(self) -> dict[str, Any]:
        """Get a summary of the timetable data."""
        return {
            "teacher": self.teacher.name,
            "two_week_timetable": self.two_week_timetable,
            "anchor_date": self.anchor_date.isoformat() if self.anchor_date else None,
            "classes": len(self.classes),
            "recurring_lessons": len(self.recurring_lessons),
            "duties": len(self.duties),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# =============================================================================
# Lesson Content Models (persisted)
# =============================================================================

class _StoredModel(BaseModel):
    """Base for records the planner writes to the store."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class LessonLink(_StoredModel):
    """A resource link attached to a lesson."""

    url: str
    label: str = ""

    @model_validator(mode="after")
    def default_label(self) -> "LessonLink":
        if not self.label:
            self.label = self.url
        return self


class LessonContentEntry(_StoredModel):
    """
    One lesson's content in a class's sequence.

    Entries are date-agnostic; `order` is the 0-based position in the class's
    sequence. Unknown keys written by other features are kept as extras.
    """

    id: str = Field(min_length=1)
    title: str = ""
    notes: str = ""
    links: list[LessonLink] = Field(default_factory=list)
    order: int = 0
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None

    def __str__(self) -> str:
        return f"#{self.order} {self.title or '(untitled)'}"


class ClassSchedule(_StoredModel):
    """Binding offset between a class's sequence and its occurrences."""

    start_index: int = Field(default=0, ge=0)
