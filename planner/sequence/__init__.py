"""Lesson content sequences and their binding to timetable occurrences."""

from .ordered import OrderedList, SequenceOrderError, UnknownLessonError
from .content import LessonContentSequence, TopicGroup
from .binding import ScheduledLesson, SequenceScheduleBinding

__all__ = [
    "OrderedList",
    "SequenceOrderError",
    "UnknownLessonError",
    "LessonContentSequence",
    "TopicGroup",
    "ScheduledLesson",
    "SequenceScheduleBinding",
]
