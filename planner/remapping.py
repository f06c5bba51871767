"""
Relocation of date-keyed lesson records when the holiday configuration changes.

Lesson records written against a specific date ("classId::YYYY-MM-DD") are
tied to whichever occurrence fell on that date. Adding or removing a full
holiday week shifts every later occurrence to a different date, so the
records must move with the lesson they were written for.

An occurrence's identity is (week number, weekday, period label). Because
the recurring definition did not change, the k-th occurrence with a given
identity under the old holidays is the same lesson as the k-th occurrence
with that identity under the new holidays. The new projection runs past the
old horizon by the number of skipped weeks, so every old occurrence has a
counterpart. A record whose old date is not an occurrence is kept where it
is; a relocation that would land on a kept record's key is refused.

This module also holds the one-time migration from flat per-date records to
per-class content sequences.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Optional

from .data.models import LessonContentEntry, TimetableDocument
from .logging import get_logger
from .sequence.content import LessonContentSequence
from .sequence.binding import SequenceScheduleBinding
from .store import INSTANCES_KEY, MIGRATIONS_KEY, SEQUENCES_KEY, KeyValueStore
from .timetable.dates import DateLike, get_monday, parse_date
from .timetable.holidays import HolidayCalendar
from .timetable.occurrences import Occurrence, OccurrenceGenerator

logger = get_logger(__name__)

DEFAULT_REMAP_HORIZON_WEEKS = 52
KEY_SEPARATOR = "::"
LEGACY_MIGRATION = "lessonInstancesToSequences"

# Extra weeks on the new projection so a fortnight's parity phase fits
PARITY_MARGIN_WEEKS = 2


class RemapConflictError(ValueError):
    """Raised when relocating records would overwrite records that stay put."""

    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(
            "Saved lesson records would be overwritten by moved records: " + ", ".join(keys)
        )


# =============================================================================
# Instance Keys
# =============================================================================

def lesson_instance_key(class_id: str, day: DateLike) -> str:
    """'12G2::2026-02-09'"""
    return f"{class_id}{KEY_SEPARATOR}{parse_date(day).isoformat()}"


def parse_instance_key(key: str) -> Optional[tuple[str, date]]:
    """Split a record key into (class_id, date); None if the key is malformed."""
    class_id, sep, date_part = key.rpartition(KEY_SEPARATOR)
    if not sep or not class_id:
        return None
    try:
        return class_id, date.fromisoformat(date_part)
    except ValueError:
        return None


def _ranked_identities(occurrences: list[Occurrence]) -> dict[tuple, Occurrence]:
    """Key each occurrence by (identity, k) where k counts earlier occurrences with that identity."""
    seen: dict[tuple, int] = defaultdict(int)
    ranked: dict[tuple, Occurrence] = {}
    for occ in occurrences:
        rank = seen[occ.identity]
        seen[occ.identity] += 1
        ranked[(occ.identity, rank)] = occ
    return ranked


# =============================================================================
# Remapping Engine
# =============================================================================

class RemappingEngine:
    """
    Moves date-keyed records between two holiday configurations.

    Example:
        engine = RemappingEngine(document, today=date(2026, 1, 19))
        remapped = engine.remap(instances, old_calendar, new_calendar)
    """

    def __init__(
        self,
        document: TimetableDocument,
        today: Optional[DateLike] = None,
        horizon_weeks: int = DEFAULT_REMAP_HORIZON_WEEKS,
    ):
        self.document = document
        self.today = parse_date(today) if today is not None else date.today()
        self.horizon_weeks = horizon_weeks

    def _weeks_to_cover(self, days: list[date]) -> int:
        """Horizon reaching at least the week of the latest of `days`."""
        start = get_monday(self.today)
        latest = max(days, default=start)
        return max(self.horizon_weeks, (get_monday(latest) - start).days // 7 + 1)

    def date_mapping(
        self,
        class_id: str,
        old_calendar: HolidayCalendar,
        new_calendar: HolidayCalendar,
        horizon_weeks: Optional[int] = None,
    ) -> dict[date, date]:
        """
        Old date -> new date for every old occurrence that has a counterpart.

        The old projection covers `horizon_weeks` (default: the engine's
        horizon). The new projection is longer by the number of weeks the new
        calendar skips from today on, plus a fortnight, so the old horizon's
        last occurrences are not left without a counterpart.
        """
        horizon = horizon_weeks or self.horizon_weeks
        start = get_monday(self.today)
        skipped_ahead = sum(1 for monday in new_calendar.full_week_mondays if monday >= start)
        new_horizon = horizon + skipped_ahead + PARITY_MARGIN_WEEKS

        old = OccurrenceGenerator(self.document, old_calendar, self.today).generate(class_id, horizon)
        new = OccurrenceGenerator(self.document, new_calendar, self.today).generate(class_id, new_horizon)
        new_by_identity = _ranked_identities(new)

        mapping: dict[date, date] = {}
        for key, occ in _ranked_identities(old).items():
            counterpart = new_by_identity.get(key)
            if counterpart is not None and occ.date not in mapping:
                mapping[occ.date] = counterpart.date
        return mapping

    def remap(
        self,
        instances: dict[str, Any],
        old_calendar: HolidayCalendar,
        new_calendar: HolidayCalendar,
    ) -> dict[str, Any]:
        """
        Relocate records keyed "classId::date" from old to new occurrence dates.

        Args:
            instances: Records keyed by lesson_instance_key()
            old_calendar: Holidays the records were written under
            new_calendar: Holidays now in effect

        Returns:
            A new dict with as many records as `instances`. Records whose old
            date is not an occurrence, for unknown classes or with malformed
            keys stay under their old key.

        Raises:
            RemapConflictError: If a moved record would land on the key of a
                record that stays put; nothing is returned
        """
        if old_calendar.same_skipped_weeks(new_calendar):
            return dict(instances)

        by_class: dict[str, list[tuple[str, date]]] = defaultdict(list)
        for key in instances:
            parsed = parse_instance_key(key)
            if parsed is not None and self.document.get_class(parsed[0]) is not None:
                by_class[parsed[0]].append((key, parsed[1]))

        # Each class's old projection reaches its latest record, even past the horizon
        mappings = {
            class_id: self.date_mapping(
                class_id,
                old_calendar,
                new_calendar,
                self._weeks_to_cover([day for _, day in keyed]),
            )
            for class_id, keyed in by_class.items()
        }

        relocated: dict[str, Any] = {}
        sources: set[str] = set()
        conflicts: list[str] = []
        moved = 0
        for class_id, keyed in by_class.items():
            mapping = mappings[class_id]
            for key, old_date in keyed:
                new_date = mapping.get(old_date)
                if new_date is None:
                    continue
                new_key = lesson_instance_key(class_id, new_date)
                if new_key in relocated:
                    conflicts.append(new_key)
                    continue
                relocated[new_key] = instances[key]
                sources.add(key)
                if new_date != old_date:
                    moved += 1

        remapped = dict(relocated)
        kept = 0
        for key, value in instances.items():
            if key in sources:
                continue
            if key in remapped:
                conflicts.append(key)
                continue
            remapped[key] = value
            kept += 1

        if conflicts:
            logger.warning("remap_conflict", keys=sorted(conflicts))
            raise RemapConflictError(sorted(conflicts))

        logger.info("instances_remapped", moved=moved, kept=kept, total=len(instances))
        return remapped

    def apply(
        self,
        store: KeyValueStore,
        old_calendar: HolidayCalendar,
        new_calendar: HolidayCalendar,
    ) -> bool:
        """
        Remap the stored lessonInstances in place.

        Returns:
            True if anything was written

        Raises:
            RemapConflictError: Nothing is written
        """
        instances = store.get(INSTANCES_KEY)
        if not instances:
            return False
        remapped = self.remap(instances, old_calendar, new_calendar)
        if remapped == instances:
            return False
        store.set(INSTANCES_KEY, remapped)
        return True


# =============================================================================
# Legacy Migration
# =============================================================================

def _has_content(record: dict[str, Any]) -> bool:
    return bool(record.get("title") or record.get("notes") or record.get("links"))


def migrate_legacy_instances(store: KeyValueStore) -> bool:
    """
    Convert flat per-date records into per-class sequences, once.

    Each class's non-empty records are sorted by date and become entries
    0..n-1 with the binding offset reset to 0. Classes that already have a
    sequence are left alone. The migration is recorded in the store and
    never runs again.

    Returns:
        True if the migration ran
    """
    applied = store.get(MIGRATIONS_KEY) or []
    if LEGACY_MIGRATION in applied:
        return False

    instances = store.get(INSTANCES_KEY)
    if not instances:
        return False

    sequence = LessonContentSequence(store)
    binding = SequenceScheduleBinding(store, sequence)
    existing = set((store.get(SEQUENCES_KEY) or {}).keys())

    by_class: dict[str, list[tuple[date, dict[str, Any]]]] = defaultdict(list)
    for key, record in instances.items():
        parsed = parse_instance_key(key)
        if parsed is None or not isinstance(record, dict) or not _has_content(record):
            continue
        by_class[parsed[0]].append((parsed[1], record))

    migrated = []
    for class_id, records in by_class.items():
        if class_id in existing:
            continue
        records.sort(key=lambda item: item[0])
        entries = [
            LessonContentEntry(
                id=f"{class_id}-migrated-{i}",
                title=record.get("title") or "",
                notes=record.get("notes") or "",
                links=record.get("links") or [],
                order=i,
            )
            for i, (_, record) in enumerate(records)
        ]
        sequence.replace_all(class_id, entries)
        binding.set_start_index(class_id, 0)
        migrated.append(class_id)

    store.set(MIGRATIONS_KEY, [*applied, LEGACY_MIGRATION])
    logger.info("legacy_migration_completed", classes=migrated)
    return True
