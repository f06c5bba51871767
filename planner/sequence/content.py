"""
Per-class lesson content sequences.

A sequence is the teacher's ordered list of lesson content for a class,
independent of dates. Each operation reads the class's whole sequence from
the store, changes it, and writes the whole sequence back.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from ..data.models import LessonContentEntry
from ..logging import get_logger
from ..store import SEQUENCES_KEY, KeyValueStore
from .ordered import OrderedList

logger = get_logger(__name__)

# Fields a patch may never change
PROTECTED_FIELDS = {"id", "order"}


@dataclass
class TopicGroup:
    """A contiguous run of entries sharing a topic (or an untopiced run)."""
    topic_id: Optional[str]
    topic_name: Optional[str]
    entries: list[LessonContentEntry] = field(default_factory=list)

    @property
    def first_order(self) -> int:
        return self.entries[0].order

    @property
    def last_order(self) -> int:
        return self.entries[-1].order


def _field_name(key: str) -> Optional[str]:
    """Map a camelCase alias or snake_case name to the model field name."""
    for name, info in LessonContentEntry.model_fields.items():
        if key == name or key == info.alias:
            return name
    return None


def new_lesson_id(class_id: str) -> str:
    return f"{class_id}-lesson-{uuid.uuid4().hex[:12]}"


class LessonContentSequence:
    """Ordered lesson content for every class, persisted under lessonSequences."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load_all(self) -> dict[str, list[dict[str, Any]]]:
        return self.store.get(SEQUENCES_KEY) or {}

    def _load(self, class_id: str) -> OrderedList[LessonContentEntry]:
        records = self._load_all().get(class_id, [])
        return OrderedList(LessonContentEntry.model_validate(r) for r in records)

    def _save(self, class_id: str, entries: OrderedList[LessonContentEntry]) -> None:
        all_sequences = self._load_all()
        all_sequences[class_id] = [e.to_record() for e in entries]
        self.store.set(SEQUENCES_KEY, all_sequences)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, class_id: str) -> list[LessonContentEntry]:
        """The class's entries sorted by order, with orders renumbered 0..n-1."""
        return self._load(class_id).items

    def get_entry(self, class_id: str, lesson_id: str) -> LessonContentEntry:
        """
        Raises:
            UnknownLessonError: If the class has no entry with that ID
        """
        return self._load(class_id).find(lesson_id)

    def at(self, class_id: str, position: int) -> Optional[LessonContentEntry]:
        """Entry at a sequence position, or None when out of range."""
        return self._load(class_id).get(position)

    def length(self, class_id: str) -> int:
        return len(self._load(class_id))

    def has_sequence(self, class_id: str) -> bool:
        return class_id in self._load_all()

    def class_ids(self) -> list[str]:
        return list(self._load_all())

    def topic_groups(self, class_id: str) -> list[TopicGroup]:
        """
        Group contiguous entries by topic.

        Grouping is computed on read; entries keep one flat order per class.
        A topic that appears in two separated runs yields two groups.
        """
        groups: list[TopicGroup] = []
        for entry in self._load(class_id):
            if groups and groups[-1].topic_id == entry.topic_id:
                groups[-1].entries.append(entry)
            else:
                groups.append(TopicGroup(entry.topic_id, entry.topic_name, [entry]))
        return groups

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, class_id: str, data: Optional[dict[str, Any]] = None) -> LessonContentEntry:
        """
        Add a lesson at the end of the class's sequence.

        Args:
            class_id: Class to add to
            data: Optional fields (title, notes, links, topicId, topicName)

        Returns:
            The new entry with a fresh ID and order = previous length
        """
        entries = self._load(class_id)
        fields = {k: v for k, v in (data or {}).items() if _field_name(k) not in PROTECTED_FIELDS}
        entry = LessonContentEntry.model_validate({**fields, "id": new_lesson_id(class_id), "order": 0})
        entries.append(entry)
        self._save(class_id, entries)

        logger.info("lesson_appended", class_id=class_id, lesson_id=entry.id, order=entry.order)
        return entry

    def update(self, class_id: str, lesson_id: str, patch: dict[str, Any]) -> LessonContentEntry:
        """
        Merge `patch` into an entry. `id` and `order` are never changed.

        Raises:
            UnknownLessonError: If the class has no entry with that ID
        """
        entries = self._load(class_id)
        current = entries.find(lesson_id)

        changes: dict[str, Any] = {}
        for key, value in patch.items():
            name = _field_name(key) or key
            if name not in PROTECTED_FIELDS:
                changes[name] = value

        updated = LessonContentEntry.model_validate({**current.model_dump(), **changes})
        entries.replace(lesson_id, updated)
        self._save(class_id, entries)

        logger.info("lesson_updated", class_id=class_id, lesson_id=lesson_id, fields=sorted(changes))
        return updated

    def delete(self, class_id: str, lesson_id: str) -> None:
        """
        Remove an entry and close the gap in the remaining orders.

        Raises:
            UnknownLessonError: If the class has no entry with that ID
        """
        entries = self._load(class_id)
        entries.remove(lesson_id)
        self._save(class_id, entries)
        logger.info("lesson_deleted", class_id=class_id, lesson_id=lesson_id, remaining=len(entries))

    def reorder(self, class_id: str, new_id_order: list[str]) -> list[LessonContentEntry]:
        """
        Reorder the class's sequence.

        Args:
            class_id: Class to reorder
            new_id_order: Every existing entry ID exactly once, in the new order

        Raises:
            SequenceOrderError: If `new_id_order` is not a permutation of the
                existing IDs; nothing is written
        """
        entries = self._load(class_id)
        entries.permute(list(new_id_order))
        self._save(class_id, entries)
        logger.info("sequence_reordered", class_id=class_id, size=len(entries))
        return entries.items

    def move(self, class_id: str, lesson_id: str, position: int) -> list[LessonContentEntry]:
        """Move one entry to `position` (drag and drop)."""
        entries = self._load(class_id)
        entries.move(lesson_id, position)
        self._save(class_id, entries)
        logger.info("lesson_moved", class_id=class_id, lesson_id=lesson_id, position=position)
        return entries.items

    def replace_all(self, class_id: str, entries: list[LessonContentEntry]) -> None:
        """Overwrite a class's sequence; orders are renumbered from the given list order."""
        ordered: OrderedList[LessonContentEntry] = OrderedList()
        for entry in entries:
            ordered.append(entry)
        self._save(class_id, ordered)

