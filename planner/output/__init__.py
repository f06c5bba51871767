"""Class plan export and progress metrics."""

from .schema import (
    OccurrenceOutput,
    PlannedLessonOutput,
    ClassPlanOutput,
    create_class_plan,
)
from .metrics import (
    SequenceProgress,
    calculate_progress,
    sequence_progress,
)

__all__ = [
    # Schema models
    "OccurrenceOutput",
    "PlannedLessonOutput",
    "ClassPlanOutput",
    "create_class_plan",
    # Metrics
    "SequenceProgress",
    "calculate_progress",
    "sequence_progress",
]
