"""
School holiday calendar.

A holiday is a named inclusive date range. Each weekday it covers is
classified once:

- FULL_WEEK: all five weekdays of that week fall inside the same holiday.
  The week is skipped by occurrence generation and by fortnight parity.
- PARTIAL: the holiday covers only some weekdays of that week. Informational
  only ("days off"); the week still runs and still counts for parity.

The persisted shape keeps the `weekMondays` / `holidayDates` lists older
builds wrote, but both are derived from the classification on save and
ignored on load, so they cannot drift apart.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..logging import get_logger
from ..store import SETTINGS_KEY, KeyValueStore
from .dates import ONE_WEEK, DateLike, get_monday, iter_weekdays, parse_date

logger = get_logger(__name__)


class HolidayDayKind(str, Enum):
    """How a holiday weekday affects its week."""
    FULL_WEEK = "full_week"
    PARTIAL = "partial"


# =============================================================================
# Holiday Period
# =============================================================================

class HolidayPeriod(BaseModel):
    """A named holiday covering [start_date, end_date] inclusive."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    name: str
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "HolidayPeriod":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date ({self.end_date}) must not be before start_date ({self.start_date})"
            )
        return self

    def classified_days(self) -> dict[date, HolidayDayKind]:
        """Every weekday in range, tagged FULL_WEEK or PARTIAL by its week's coverage."""
        by_week: dict[date, list[date]] = defaultdict(list)
        for day in iter_weekdays(self.start_date, self.end_date):
            by_week[get_monday(day)].append(day)

        classified: dict[date, HolidayDayKind] = {}
        for days in by_week.values():
            kind = HolidayDayKind.FULL_WEEK if len(days) >= 5 else HolidayDayKind.PARTIAL
            for day in days:
                classified[day] = kind
        return classified

    @property
    def full_week_mondays(self) -> frozenset[date]:
        return frozenset(
            get_monday(d) for d, kind in self.classified_days().items()
            if kind is HolidayDayKind.FULL_WEEK
        )

    @property
    def holiday_dates(self) -> frozenset[date]:
        return frozenset(self.classified_days())

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_record(self) -> dict[str, Any]:
        """Persisted shape, including the derived week/date lists."""
        return {
            "id": self.id,
            "name": self.name,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "weekMondays": sorted(d.isoformat() for d in self.full_week_mondays),
            "holidayDates": sorted(d.isoformat() for d in self.holiday_dates),
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.start_date} – {self.end_date})"


# =============================================================================
# Holiday Calendar
# =============================================================================

class HolidayCalendar:
    """
    The set of configured holidays.

    Nothing derived is cached: every query recomputes from the holiday list,
    so removing a holiday takes effect on the next query.
    """

    def __init__(self, holidays: Optional[Iterable[HolidayPeriod]] = None):
        self._holidays: list[HolidayPeriod] = list(holidays or [])

    @property
    def holidays(self) -> list[HolidayPeriod]:
        return sorted(self._holidays, key=lambda h: (h.start_date, h.end_date, h.name))

    def copy(self) -> "HolidayCalendar":
        return HolidayCalendar(self._holidays)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_holiday(
        self,
        name: str,
        start_date: DateLike,
        end_date: DateLike,
        holiday_id: Optional[str] = None,
    ) -> Optional[HolidayPeriod]:
        """
        Add a holiday range.

        Args:
            name: Display name (e.g., "February half term")
            start_date: First day of the holiday
            end_date: Last day of the holiday (inclusive)
            holiday_id: Explicit ID; generated when omitted

        Returns:
            The new HolidayPeriod, or None if end_date is before start_date
        """
        start = parse_date(start_date)
        end = parse_date(end_date)
        if end < start:
            logger.debug("holiday_rejected", name=name, start=start.isoformat(), end=end.isoformat())
            return None

        holiday = HolidayPeriod(
            id=holiday_id or f"holiday-{uuid.uuid4().hex[:8]}",
            name=name,
            start_date=start,
            end_date=end,
        )
        self._holidays.append(holiday)
        logger.info(
            "holiday_added",
            holiday_id=holiday.id,
            name=name,
            full_weeks=len(holiday.full_week_mondays),
            days=len(holiday.holiday_dates),
        )
        return holiday

    def remove_holiday(self, holiday_id: str) -> bool:
        """Remove a holiday by ID. Returns False if no such holiday exists."""
        before = len(self._holidays)
        self._holidays = [h for h in self._holidays if h.id != holiday_id]
        removed = len(self._holidays) < before
        if removed:
            logger.info("holiday_removed", holiday_id=holiday_id)
        return removed

    def get_holiday(self, holiday_id: str) -> Optional[HolidayPeriod]:
        return next((h for h in self._holidays if h.id == holiday_id), None)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def classified_days(self) -> dict[date, HolidayDayKind]:
        """Union over all holidays; a date that is FULL_WEEK in any holiday stays FULL_WEEK."""
        merged: dict[date, HolidayDayKind] = {}
        for holiday in self._holidays:
            for day, kind in holiday.classified_days().items():
                if merged.get(day) is not HolidayDayKind.FULL_WEEK:
                    merged[day] = kind
        return merged

    @property
    def full_week_mondays(self) -> frozenset[date]:
        mondays: set[date] = set()
        for holiday in self._holidays:
            mondays |= holiday.full_week_mondays
        return frozenset(mondays)

    @property
    def holiday_dates(self) -> frozenset[date]:
        dates: set[date] = set()
        for holiday in self._holidays:
            dates |= holiday.holiday_dates
        return frozenset(dates)

    def is_holiday_week(self, monday: DateLike) -> bool:
        """True if the week starting `monday` is a full-skip holiday week."""
        return get_monday(monday) in self.full_week_mondays

    def is_holiday_date(self, day: DateLike) -> bool:
        return parse_date(day) in self.holiday_dates

    def classification(self, day: DateLike) -> Optional[HolidayDayKind]:
        return self.classified_days().get(parse_date(day))

    def holiday_name_for_date(self, day: DateLike) -> Optional[str]:
        """Name of the first holiday covering `day`, weekends included."""
        d = parse_date(day)
        for holiday in self.holidays:
            if holiday.covers(d):
                return holiday.name
        return None

    def week_parity(self, day: DateLike, anchor: DateLike) -> int:
        """
        Fortnight week (1 or 2) for the week containing `day`.

        Counts the non-holiday weeks from the anchor's week (inclusive) up to
        `day`'s week (exclusive). Full holiday weeks do not count, so the
        alternation resumes after a holiday exactly where it left off. Dates
        before the anchor count backwards.
        """
        target = get_monday(day)
        origin = get_monday(anchor)
        skipped = self.full_week_mondays

        low, high = sorted((origin, target))
        count = 0
        week = low
        while week < high:
            if week not in skipped:
                count += 1
            week += ONE_WEEK

        if target < origin:
            count = -count
        return 1 if count % 2 == 0 else 2

    def same_skipped_weeks(self, other: "HolidayCalendar") -> bool:
        """True if both calendars skip exactly the same weeks."""
        return self.full_week_mondays == other.full_week_mondays

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_records(self) -> list[dict[str, Any]]:
        return [h.to_record() for h in self.holidays]

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "HolidayCalendar":
        return cls(HolidayPeriod.model_validate(r) for r in records)

    @classmethod
    def load(cls, store: KeyValueStore) -> "HolidayCalendar":
        """Read holidays from settings.holidays."""
        settings = store.get(SETTINGS_KEY) or {}
        return cls.from_records(settings.get("holidays", []))

    def save(self, store: KeyValueStore) -> None:
        """Write holidays to settings.holidays, keeping other settings untouched."""
        settings = store.get(SETTINGS_KEY) or {}
        settings["holidays"] = self.to_records()
        store.set(SETTINGS_KEY, settings)

    def __len__(self) -> int:
        return len(self._holidays)

    def __iter__(self):
        return iter(self.holidays)
