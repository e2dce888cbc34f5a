"""
Durable lesson timers.

Reminder, auto-completion and reschedule-response deadlines are stored as rows
and evaluated by a periodic Celery beat scan, so a process restart never loses
a pending transition. A lesson has at most one timer of each kind.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TimerKind(str, Enum):
    REMINDER = "reminder"
    AUTO_COMPLETE = "auto_complete"
    RESCHEDULE_RESPONSE = "reschedule_response"


class TimerStatus(str, Enum):
    PENDING = "pending"
    FIRED = "fired"
    CANCELLED = "cancelled"


class LessonTimer(Base):
    """Scheduled, cancellable action keyed by lesson id and kind."""

    __tablename__ = "lesson_timers"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    lesson_id = Column(
        String(26), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind = Column(String(30), nullable=False)
    due_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=TimerStatus.PENDING.value)
    fired_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    lesson = relationship("Lesson", back_populates="timers")

    __table_args__ = (UniqueConstraint("lesson_id", "kind", name="uq_lesson_timer_kind"),)

    def __repr__(self) -> str:
        return f"<LessonTimer {self.kind} lesson={self.lesson_id} due={self.due_at} {self.status}>"


Index("ix_lesson_timers_status_due", LessonTimer.status, LessonTimer.due_at)
