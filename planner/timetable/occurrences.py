"""
Projection of the recurring timetable onto concrete future dates.

For one class, weeks are walked forward from the Monday of "today":

1. A full holiday week is skipped and consumes no occurrence numbers.
2. In a fortnightly timetable the week's parity (1 or 2) selects which
   slots apply; parity discounts holiday weeks.
3. For each weekday on or after today, the class's matching slots are sorted
   by start time and back-to-back slots (end == next start) are merged into
   one occurrence labelled "first–last".
4. Each resulting occurrence gets the next occurrence number: 0, 1, 2, ...

The result is a pure function of (today, document, holidays, horizon).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..data.models import RecurringLesson, TimetableDocument
from .dates import DateLike, ONE_WEEK, get_monday, parse_date
from .holidays import HolidayCalendar

DEFAULT_HORIZON_WEEKS = 26
PERIOD_SEPARATOR = "–"


# =============================================================================
# Occurrence
# =============================================================================

@dataclass(frozen=True)
class Occurrence:
    """One concrete meeting of a class."""
    class_id: str
    occurrence_num: int
    date: date
    day_of_week: int
    week_number: Optional[int]
    start_time: str
    end_time: str
    period_label: str
    room: Optional[str] = None
    subject: Optional[str] = None
    slot_start_times: tuple[str, ...] = ()
    lesson_ids: tuple[str, ...] = ()

    @property
    def date_iso(self) -> str:
        return self.date.isoformat()

    @property
    def identity(self) -> tuple[Optional[int], int, str]:
        """(week_number, day_of_week, period_label): which recurring slot this is."""
        return (self.week_number, self.day_of_week, self.period_label)

    @property
    def is_merged(self) -> bool:
        return len(self.slot_start_times) > 1

    def matches_slot(self, day: date, start_time: str) -> bool:
        """True if this occurrence is on `day` and one of its source slots starts at `start_time`."""
        return self.date == day and start_time in self.slot_start_times

    def __str__(self) -> str:
        return f"#{self.occurrence_num} {self.date_iso} {self.start_time}-{self.end_time} P{self.period_label}"


# =============================================================================
# Slot Merging
# =============================================================================

def merge_consecutive_lessons(lessons: list[RecurringLesson]) -> list[list[RecurringLesson]]:
    """
    Group back-to-back slots into runs.

    Slots are sorted by start time; a slot joins the current run when it
    starts exactly when the run ends. Each run is one continuous lesson.
    """
    runs: list[list[RecurringLesson]] = []
    for lesson in sorted(lessons, key=lambda l: l.start_minutes):
        if runs and runs[-1][-1].end_time == lesson.start_time:
            runs[-1].append(lesson)
        else:
            runs.append([lesson])
    return runs


def merged_period_label(run: list[RecurringLesson]) -> str:
    """'3a' for a single slot, '3a–3b' for a run."""
    if len(run) == 1:
        return run[0].period
    return f"{run[0].period}{PERIOD_SEPARATOR}{run[-1].period}"


# =============================================================================
# Generator
# =============================================================================

class OccurrenceGenerator:
    """
    Projects a timetable document forward from a fixed "today".

    Example:
        generator = OccurrenceGenerator(document, calendar, today=date(2026, 1, 19))
        for occ in generator.generate("12G2", horizon_weeks=4):
            print(occ.occurrence_num, occ.date_iso, occ.period_label)
    """

    def __init__(
        self,
        document: TimetableDocument,
        calendar: Optional[HolidayCalendar] = None,
        today: Optional[DateLike] = None,
    ):
        self.document = document
        self.calendar = calendar if calendar is not None else HolidayCalendar()
        self.today = parse_date(today) if today is not None else date.today()

    def with_calendar(self, calendar: HolidayCalendar) -> "OccurrenceGenerator":
        """Same document and today, different holidays."""
        return OccurrenceGenerator(self.document, calendar, self.today)

    def week_number_for(self, day: DateLike) -> Optional[int]:
        """Fortnight week for `day`, or None for a weekly timetable."""
        anchor = self.document.anchor_date
        if anchor is None:
            return None
        return self.calendar.week_parity(day, anchor)

    def generate(self, class_id: str, horizon_weeks: int = DEFAULT_HORIZON_WEEKS) -> list[Occurrence]:
        """
        All occurrences of a class from today over `horizon_weeks` weeks.

        Args:
            class_id: Class to project
            horizon_weeks: Number of calendar weeks to walk, holiday weeks included

        Returns:
            Occurrences in date/time order with contiguous occurrence numbers.
            A class with no slots yields an empty list.
        """
        slots = self.document.get_class_lessons(class_id)
        if not slots:
            return []

        fortnightly = self.document.anchor_date is not None
        skipped = self.calendar.full_week_mondays
        start = get_monday(self.today)

        occurrences: list[Occurrence] = []
        for w in range(horizon_weeks):
            week_start = start + ONE_WEEK * w
            if week_start in skipped:
                continue

            week_number = self.week_number_for(week_start)

            for offset in range(5):
                day = week_start + timedelta(days=offset)
                if day < self.today:
                    continue

                dow = offset + 1
                day_slots = [
                    s for s in slots
                    if s.day_of_week == dow and (not fortnightly or s.week_number == week_number)
                ]
                for run in merge_consecutive_lessons(day_slots):
                    occurrences.append(self._build(class_id, len(occurrences), day, week_number, run))

        return occurrences

    def generate_all(self, horizon_weeks: int = DEFAULT_HORIZON_WEEKS) -> dict[str, list[Occurrence]]:
        """Occurrences for every class in the document."""
        return {class_id: self.generate(class_id, horizon_weeks) for class_id in self.document.class_ids}

    def find_occurrence_for_date(
        self,
        class_id: str,
        day: DateLike,
        start_time: str,
        horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
    ) -> Optional[int]:
        """
        Occurrence number of the meeting on `day` whose source slot starts at `start_time`.

        A merged occurrence matches the start time of any slot it was built
        from. Returns None if the meeting is not in the projection.
        """
        target = parse_date(day)
        for occ in self.generate(class_id, horizon_weeks):
            if occ.matches_slot(target, start_time):
                return occ.occurrence_num
            if occ.date > target:
                break
        return None

    def first_on_or_after(
        self,
        class_id: str,
        day: DateLike,
        horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
    ) -> list[Occurrence]:
        """All occurrences on the earliest projected date that is on or after `day`."""
        target = parse_date(day)
        found: list[Occurrence] = []
        for occ in self.generate(class_id, horizon_weeks):
            if occ.date < target:
                continue
            if found and occ.date != found[0].date:
                break
            found.append(occ)
        return found

    @staticmethod
    def _build(
        class_id: str,
        number: int,
        day: date,
        week_number: Optional[int],
        run: list[RecurringLesson],
    ) -> Occurrence:
        first, last = run[0], run[-1]
        return Occurrence(
            class_id=class_id,
            occurrence_num=number,
            date=day,
            day_of_week=day.isoweekday(),
            week_number=week_number,
            start_time=first.start_time,
            end_time=last.end_time,
            period_label=merged_period_label(run),
            room=first.room,
            subject=first.subject,
            slot_start_times=tuple(s.start_time for s in run),
            lesson_ids=tuple(s.id for s in run),
        )
