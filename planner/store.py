"""
Key-value persistence for planner state.

The planner reads and writes whole JSON blobs by key; there are no
partial-field updates at this boundary. Every mutation in the planner is a
read-modify-write at the call site with no locking: the planner assumes a
single local user, so two writers touching the same key concurrently is
undefined and the last write wins.

Keys:
    timetableData     imported timetable document
    lessonSequences   {classId: [LessonContentEntry, ...]}
    lessonSchedules   {classId: {"startIndex": int}}
    settings          {"holidays": [...], ...}
    lessonInstances   {"classId::YYYY-MM-DD": {...}} date-keyed lesson records
    migrations        names of one-time migrations already applied
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Optional, Protocol, Union

TIMETABLE_KEY = "timetableData"
SEQUENCES_KEY = "lessonSequences"
SCHEDULES_KEY = "lessonSchedules"
SETTINGS_KEY = "settings"
INSTANCES_KEY = "lessonInstances"
MIGRATIONS_KEY = "migrations"


class StoreError(Exception):
    """Raised when the backing storage cannot be read or written."""
    pass


class KeyValueStore(Protocol):
    """Synchronous key -> JSON value store."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> bool:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """In-memory store; values are deep-copied so callers never share state with it."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = copy.deepcopy(value)
        return True

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """
    Store backed by a single JSON file holding every key.

    The file is re-read on each get() and rewritten whole on each set(), so
    separate store instances pointed at the same path see each other's writes.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Store file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Store file {self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> bool:
        data = self._read()
        data[key] = value
        self._write(data)
        return True

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
