# backend/lessonbook/repositories/lesson_timer_repository.py
"""
Repository for durable lesson timers.

Timers are claimed with a conditional UPDATE (pending -> fired) so overlapping
scans never evaluate the same timer twice.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.lesson_timer import LessonTimer, TimerStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LessonTimerRepository(BaseRepository[LessonTimer]):
    def __init__(self, db: Session):
        super().__init__(db, LessonTimer)

    def schedule(self, lesson_id: str, kind: str, due_at: datetime) -> LessonTimer:
        """Create or re-arm the lesson's single timer of ``kind``."""
        timer = self.find_one_by(lesson_id=lesson_id, kind=kind)
        if timer is None:
            return self.create(lesson_id=lesson_id, kind=kind, due_at=due_at)
        timer.due_at = due_at
        timer.status = TimerStatus.PENDING.value
        timer.fired_at = None
        self.db.flush()
        return timer

    def get_pending_for_lesson(self, lesson_id: str) -> List[LessonTimer]:
        return self.find_by(lesson_id=lesson_id, status=TimerStatus.PENDING.value)

    def cancel_pending_for_lesson(
        self, lesson_id: str, kinds: Optional[Iterable[str]] = None
    ) -> int:
        try:
            query = self.db.query(LessonTimer).filter(
                LessonTimer.lesson_id == lesson_id,
                LessonTimer.status == TimerStatus.PENDING.value,
            )
            if kinds is not None:
                query = query.filter(LessonTimer.kind.in_(list(kinds)))
            cancelled = query.update(
                {"status": TimerStatus.CANCELLED.value}, synchronize_session="fetch"
            )
            self.db.flush()
            return int(cancelled)
        except SQLAlchemyError as e:
            self.logger.error(f"Error cancelling timers for lesson {lesson_id}: {str(e)}")
            raise RepositoryException(f"Failed to cancel lesson timers: {str(e)}")

    def get_due(self, now: datetime, limit: int = 500) -> List[LessonTimer]:
        query = (
            self.db.query(LessonTimer)
            .filter(
                LessonTimer.status == TimerStatus.PENDING.value,
                LessonTimer.due_at <= now,
            )
            .order_by(LessonTimer.due_at.asc(), LessonTimer.id.asc())
            .limit(limit)
        )
        return self._execute_query(query)

    def claim(self, timer_id: str, now: datetime) -> bool:
        """Mark a pending timer fired; False if another scan got there first."""
        try:
            updated = (
                self.db.query(LessonTimer)
                .filter(LessonTimer.id == timer_id, LessonTimer.status == TimerStatus.PENDING.value)
                .update(
                    {"status": TimerStatus.FIRED.value, "fired_at": now},
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error claiming timer {timer_id}: {str(e)}")
            raise RepositoryException(f"Failed to claim timer: {str(e)}")
        return bool(updated)
