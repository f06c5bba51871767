"""
Progress metrics for lesson sequences.

A lesson counts as scheduled when its bound occurrence falls inside the
projection horizon.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..sequence.binding import SequenceScheduleBinding


@dataclass
class SequenceProgress:
    """How much of a class's sequence has a date."""
    total: int
    scheduled: int

    @property
    def remaining(self) -> int:
        return self.total - self.scheduled

    @property
    def percent_complete(self) -> float:
        """Percentage of lessons that have a date; 100 for an empty sequence."""
        if self.total == 0:
            return 100.0
        return round(self.scheduled / self.total * 100, 1)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "scheduled": self.scheduled,
            "remaining": self.remaining,
            "percentComplete": self.percent_complete,
        }


def calculate_progress(total: int, scheduled: int) -> SequenceProgress:
    if scheduled > total or scheduled < 0:
        raise ValueError(f"scheduled ({scheduled}) must be within 0..{total}")
    return SequenceProgress(total=total, scheduled=scheduled)


def sequence_progress(binding: SequenceScheduleBinding, class_id: str) -> SequenceProgress:
    """Progress of a class's sequence under the binding's current offset."""
    items = binding.scheduled_lessons(class_id)
    return calculate_progress(len(items), sum(1 for item in items if item.is_scheduled))
