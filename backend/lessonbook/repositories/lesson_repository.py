# backend/lessonbook/repositories/lesson_repository.py
"""
Lesson Repository for the lesson booking engine

Handles:
- Lesson creation and lookup
- Filtered listings for students, teachers and admins
- Compare-and-set status transitions (first writer wins)
- Trial history queries
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import NotFoundException, RepositoryException
from ..models.lesson import Lesson, LessonStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class LessonFilter:
    student_id: Optional[str] = None
    teacher_id: Optional[str] = None
    status: Optional[str] = None
    upcoming: bool = False
    now: Optional[datetime] = None
    skip: int = 0
    limit: Optional[int] = None


class LessonRepository(BaseRepository[Lesson]):
    """Repository for lesson data access."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)
        self.logger = logging.getLogger(__name__)

    def create_lesson(self, **fields: Any) -> Lesson:
        return self.create(**fields)

    def get_lesson(self, lesson_id: str) -> Lesson:
        lesson = self.get_by_id(lesson_id, load_relationships=False)
        if lesson is None:
            raise NotFoundException(
                f"Lesson with id {lesson_id} not found", code="LESSON_NOT_FOUND"
            )
        return lesson

    def get_lessons(self, lesson_filter: Optional[LessonFilter] = None) -> List[Lesson]:
        """
        List lessons ordered by start.

        ``upcoming`` keeps scheduled lessons that start after ``now``; the date
        part is filtered in SQL and the start time in Python so the query stays
        dialect-neutral.
        """
        criteria = lesson_filter or LessonFilter()
        query = self.db.query(Lesson)
        if criteria.student_id:
            query = query.filter(Lesson.student_id == criteria.student_id)
        if criteria.teacher_id:
            query = query.filter(Lesson.teacher_id == criteria.teacher_id)
        if criteria.status:
            query = query.filter(Lesson.status == criteria.status)
        if criteria.upcoming:
            if criteria.now is None:
                raise ValueError("upcoming filter requires 'now'")
            query = query.filter(
                Lesson.status == LessonStatus.SCHEDULED.value,
                Lesson.scheduled_date >= criteria.now.date(),
            )
        query = query.order_by(Lesson.scheduled_date.asc(), Lesson.scheduled_time.asc(), Lesson.id)

        lessons = self._execute_query(query)
        if criteria.upcoming and criteria.now is not None:
            lessons = [lesson for lesson in lessons if lesson.is_upcoming(criteria.now)]
        end = criteria.skip + criteria.limit if criteria.limit is not None else None
        return lessons[criteria.skip : end]

    def get_student_history(self, student_id: str) -> List[Lesson]:
        """All lessons of a student, oldest first; input to trial eligibility."""
        query = (
            self.db.query(Lesson)
            .filter(Lesson.student_id == student_id)
            .order_by(Lesson.created_at.asc(), Lesson.id.asc())
        )
        return self._execute_query(query)

    def transition_status(self, lesson_id: str, from_status: str, **fields: Any) -> bool:
        """
        Conditionally update a lesson still in ``from_status``.

        Returns False when another writer moved the lesson first; in that case
        nothing is written.
        """
        try:
            updated = (
                self.db.query(Lesson)
                .filter(Lesson.id == lesson_id, Lesson.status == from_status)
                .update(fields, synchronize_session="fetch")
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error transitioning lesson {lesson_id}: {str(e)}")
            raise RepositoryException(f"Failed to update lesson status: {str(e)}")
        if updated:
            self.logger.debug(f"Lesson {lesson_id} moved from {from_status} with {sorted(fields)}")
        return bool(updated)

    def mark_reminder_sent(self, lesson_id: str) -> bool:
        """Set ``reminder_sent`` once; False if already sent or no longer scheduled."""
        try:
            updated = (
                self.db.query(Lesson)
                .filter(
                    Lesson.id == lesson_id,
                    Lesson.status == LessonStatus.SCHEDULED.value,
                    Lesson.reminder_sent.is_(False),
                )
                .update({"reminder_sent": True}, synchronize_session="fetch")
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking reminder for lesson {lesson_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark reminder: {str(e)}")
        return bool(updated)

    def update_lesson_status(
        self, lesson_id: str, status: str, completion_status: Optional[str] = None
    ) -> Lesson:
        """Unconditional status write used by admin tooling and fixtures."""
        fields: dict[str, Any] = {"status": status}
        if completion_status is not None:
            fields["completion_status"] = completion_status
        lesson = self.update(lesson_id, **fields)
        if lesson is None:
            raise NotFoundException(
                f"Lesson with id {lesson_id} not found", code="LESSON_NOT_FOUND"
            )
        return lesson

    def refresh(self, lesson: Lesson) -> Lesson:
        self.db.refresh(lesson)
        return lesson

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Lesson.timers))
