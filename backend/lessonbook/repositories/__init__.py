"""Data access layer. Repositories flush but never commit."""

from .base_repository import BaseRepository
from .event_outbox_repository import EventOutboxRepository
from .factory import RepositoryFactory
from .lesson_repository import LessonFilter, LessonRepository
from .lesson_timer_repository import LessonTimerRepository
from .teacher_repository import TeacherRepository

__all__ = [
    "BaseRepository",
    "EventOutboxRepository",
    "LessonFilter",
    "LessonRepository",
    "LessonTimerRepository",
    "RepositoryFactory",
    "TeacherRepository",
]
