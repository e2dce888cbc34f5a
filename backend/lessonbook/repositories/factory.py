# backend/lessonbook/repositories/factory.py
"""
Repository Factory for the lesson booking engine

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .event_outbox_repository import EventOutboxRepository
from .lesson_repository import LessonRepository
from .lesson_timer_repository import LessonTimerRepository
from .teacher_repository import TeacherRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_lesson_repository(db: Session) -> LessonRepository:
        return LessonRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> TeacherRepository:
        return TeacherRepository(db)

    @staticmethod
    def create_lesson_timer_repository(db: Session) -> LessonTimerRepository:
        return LessonTimerRepository(db)

    @staticmethod
    def create_event_outbox_repository(db: Session) -> EventOutboxRepository:
        return EventOutboxRepository(db)
