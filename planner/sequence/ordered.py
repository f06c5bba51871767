"""
Ordered list with contiguous positions.

Every item carries an `order` field. The list keeps the invariant that the
orders are exactly 0..n-1 after every operation, so callers never re-derive
index arithmetic themselves. Persisted orders are not trusted: construction
sorts by the stored order (ties keep their stored position) and renumbers.
"""

from __future__ import annotations

from collections import Counter
from typing import Generic, Iterable, Iterator, Optional, Protocol, TypeVar


class SequenceOrderError(ValueError):
    """Raised when a reorder or move would not be a permutation of the existing items."""
    pass


class UnknownLessonError(KeyError):
    """Raised when an item ID is not in the list."""
    pass


class Ordered(Protocol):
    id: str
    order: int


T = TypeVar("T", bound=Ordered)


class OrderedList(Generic[T]):
    """Items kept sorted with `order` == position."""

    def __init__(self, items: Iterable[T] = ()):
        self._items: list[T] = sorted(items, key=lambda item: item.order)
        self._renumber()

    def _renumber(self) -> None:
        for position, item in enumerate(self._items):
            item.order = position

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, position: int) -> T:
        return self._items[position]

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    def get(self, position: int) -> Optional[T]:
        """Item at `position`, or None when out of range (negative included)."""
        if 0 <= position < len(self._items):
            return self._items[position]
        return None

    def index_of(self, item_id: str) -> int:
        for position, item in enumerate(self._items):
            if item.id == item_id:
                return position
        raise UnknownLessonError(item_id)

    def find(self, item_id: str) -> T:
        return self._items[self.index_of(item_id)]

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, item: T) -> T:
        item.order = len(self._items)
        self._items.append(item)
        return item

    def replace(self, item_id: str, item: T) -> T:
        """Swap in a new version of an item, keeping its position."""
        position = self.index_of(item_id)
        item.order = position
        self._items[position] = item
        return item

    def remove(self, item_id: str) -> T:
        """Remove an item and close the gap."""
        item = self._items.pop(self.index_of(item_id))
        self._renumber()
        return item

    def move(self, item_id: str, position: int) -> None:
        """Move one item to `position`, shifting the others."""
        if not 0 <= position < len(self._items):
            raise SequenceOrderError(
                f"Position {position} is outside 0..{len(self._items) - 1}"
            )
        item = self._items.pop(self.index_of(item_id))
        self._items.insert(position, item)
        self._renumber()

    def permute(self, ordered_ids: list[str]) -> None:
        """
        Put items in the order given by `ordered_ids`.

        Raises:
            SequenceOrderError: If `ordered_ids` is not exactly a permutation of
                the current IDs (missing, unknown or repeated IDs). The list is
                left unchanged.
        """
        current = Counter(self.ids())
        requested = Counter(ordered_ids)
        if current != requested:
            missing = sorted((current - requested).elements())
            unknown = sorted((requested - current).elements())
            problems = []
            if missing:
                problems.append(f"missing {missing}")
            if unknown:
                problems.append(f"unknown or repeated {unknown}")
            raise SequenceOrderError("New order is not a permutation: " + ", ".join(problems))

        lookup = {item.id: item for item in self._items}
        self._items = [lookup[item_id] for item_id in ordered_ids]
        self._renumber()
