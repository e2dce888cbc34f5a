"""Domain events emitted by the lesson lifecycle."""

from .lesson_events import (
    LessonAutoCompleted,
    LessonBooked,
    LessonCancelled,
    LessonCompleted,
    LessonEvent,
    LessonReminderDue,
    LessonRescheduled,
    LessonRescheduleOffered,
    TeacherSuspensionFlagged,
)

__all__ = [
    "LessonAutoCompleted",
    "LessonBooked",
    "LessonCancelled",
    "LessonCompleted",
    "LessonEvent",
    "LessonReminderDue",
    "LessonRescheduleOffered",
    "LessonRescheduled",
    "TeacherSuspensionFlagged",
]
