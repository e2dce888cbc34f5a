# backend/lessonbook/models/lesson.py
"""
Lesson model for the booking engine.

A lesson is created when a student confirms a priced quote. It snapshots the
quote (base price, commission, tax, total, teacher earnings) so later rate card
changes never alter what was agreed, and it carries the lifecycle state that
reminder, auto-completion, rescheduling and cancellation act on.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
import logging
from typing import Optional, cast

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from ..utils.time_helpers import combine_utc, ensure_utc

logger = logging.getLogger(__name__)


class LessonStatus(str, Enum):
    """Lesson lifecycle statuses."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"  # Terminal
    CANCELLED = "cancelled"  # Terminal
    RESCHEDULED = "rescheduled"  # Replaced by a new scheduled lesson


class CompletionStatus(str, Enum):
    """How a completed lesson became completed."""

    PENDING = "pending"
    MANUAL = "manual"
    AUTO = "auto"


class AttendanceStatus(str, Enum):
    PENDING = "pending"
    ATTENDED = "attended"
    STUDENT_ABSENT = "student_absent"
    TEACHER_ABSENT = "teacher_absent"


class LessonType(str, Enum):
    SINGLE = "single"
    PACKAGE = "package"
    GROUP = "group"


class Lesson(Base):
    """Booked lesson between a student and a teacher."""

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(64), nullable=False, index=True)
    teacher_id = Column(String(26), ForeignKey("teacher_profiles.id"), nullable=False, index=True)

    # Schedule (UTC)
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # What was booked
    lesson_type = Column(String(20), nullable=False, default=LessonType.SINGLE.value)
    lesson_quantity = Column(Integer, nullable=False, default=1)
    group_size = Column(Integer, nullable=True)
    is_trial = Column(Boolean, nullable=False, default=False)

    # Price snapshot from the confirmed quote
    base_price = Column(Numeric(10, 2), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    teacher_earnings = Column(Numeric(10, 2), nullable=False)

    # Lifecycle
    status = Column(String(20), nullable=False, default=LessonStatus.SCHEDULED.value, index=True)
    completion_status = Column(
        String(20), nullable=False, default=CompletionStatus.PENDING.value
    )
    attendance_status = Column(
        String(20), nullable=False, default=AttendanceStatus.PENDING.value
    )
    auto_complete_at = Column(DateTime(timezone=True), nullable=False, index=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    reschedule_count = Column(Integer, nullable=False, default=0)
    teacher_reschedule_count = Column(Integer, nullable=False, default=0)
    student_response_due_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation tracking
    cancelled_by = Column(String(20), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)

    # Optional linkage when created by reschedule
    rescheduled_from_lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=True)
    rescheduled_from = relationship("Lesson", remote_side=[id], uselist=False, post_update=True)

    teacher = relationship("TeacherProfile", back_populates="lessons")
    timers = relationship("LessonTimer", back_populates="lesson", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'rescheduled')",
            name="ck_lessons_status",
        ),
        CheckConstraint(
            "completion_status IN ('pending', 'manual', 'auto')",
            name="ck_lessons_completion_status",
        ),
        CheckConstraint(
            "lesson_type IN ('single', 'package', 'group')",
            name="ck_lessons_lesson_type",
        ),
        CheckConstraint("duration_minutes > 0", name="check_lesson_duration_positive"),
        CheckConstraint("lesson_quantity > 0", name="check_lesson_quantity_positive"),
        CheckConstraint("base_price >= 0", name="check_lesson_price_non_negative"),
        CheckConstraint("reschedule_count >= 0", name="check_reschedule_count_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Lesson {self.id}: student={self.student_id}, teacher={self.teacher_id}, "
            f"date={self.scheduled_date}, time={self.scheduled_time}, status={self.status}>"
        )

    @property
    def scheduled_start(self) -> datetime:
        return combine_utc(cast(date, self.scheduled_date), cast(time, self.scheduled_time))

    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_start + timedelta(minutes=int(self.duration_minutes))

    @property
    def auto_complete_at_utc(self) -> Optional[datetime]:
        return ensure_utc(cast(Optional[datetime], self.auto_complete_at))

    def is_upcoming(self, now: datetime) -> bool:
        return self.status == LessonStatus.SCHEDULED.value and self.scheduled_start > now


Index(
    "ix_lesson_student_teacher",
    Lesson.student_id,
    Lesson.teacher_id,
)
