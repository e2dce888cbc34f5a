"""SQLAlchemy models for the lesson booking engine."""

from .event_outbox import EventOutbox, EventOutboxStatus
from .lesson import (
    AttendanceStatus,
    CompletionStatus,
    Lesson,
    LessonStatus,
    LessonType,
)
from .lesson_timer import LessonTimer, TimerKind, TimerStatus
from .teacher import TeacherGroupRate, TeacherPackageOffer, TeacherProfile, TeacherRate

__all__ = [
    "AttendanceStatus",
    "CompletionStatus",
    "EventOutbox",
    "EventOutboxStatus",
    "Lesson",
    "LessonStatus",
    "LessonTimer",
    "LessonType",
    "TeacherGroupRate",
    "TeacherPackageOffer",
    "TeacherProfile",
    "TeacherRate",
    "TimerKind",
    "TimerStatus",
]
