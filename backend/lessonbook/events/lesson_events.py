"""Lesson lifecycle events written to the outbox for the notification and payment consumers."""

from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass
class LessonEvent:
    event_type: ClassVar[str] = "lesson.event"

    lesson_id: str
    student_id: str
    teacher_id: str

    @property
    def aggregate_id(self) -> str:
        return self.lesson_id

    @property
    def idempotency_key(self) -> str:
        return f"{self.event_type}:{self.aggregate_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {key: _jsonable(value) for key, value in asdict(self).items()}


@dataclass
class LessonBooked(LessonEvent):
    """Fired after a booking is confirmed; the payment consumer charges ``total_amount``."""

    event_type: ClassVar[str] = "lesson.booked"

    scheduled_start: Optional[datetime] = None
    total_amount: Optional[Decimal] = None
    is_trial: bool = False


@dataclass
class LessonReminderDue(LessonEvent):
    event_type: ClassVar[str] = "lesson.reminder_due"

    scheduled_start: Optional[datetime] = None


@dataclass
class LessonAutoCompleted(LessonEvent):
    event_type: ClassVar[str] = "lesson.auto_completed"

    completed_at: Optional[datetime] = None
    reason: str = "no_confirmation"  # or "student_absent"


@dataclass
class LessonCompleted(LessonEvent):
    event_type: ClassVar[str] = "lesson.completed"

    confirmed_by: str = "student"
    completed_at: Optional[datetime] = None


@dataclass
class LessonCancelled(LessonEvent):
    """Fired after a lesson is cancelled; the payment consumer issues ``refund_amount``."""

    event_type: ClassVar[str] = "lesson.cancelled"

    cancelled_by: str = "student"
    cancelled_at: Optional[datetime] = None
    refund_amount: Optional[Decimal] = None
    policy_basis: str = ""


@dataclass
class LessonRescheduled(LessonEvent):
    event_type: ClassVar[str] = "lesson.rescheduled"

    new_lesson_id: str = ""
    requested_by: str = "teacher"
    new_scheduled_start: Optional[datetime] = None


@dataclass
class LessonRescheduleOffered(LessonEvent):
    """Student missed the lesson; they may accept a reschedule until ``respond_by``."""

    event_type: ClassVar[str] = "lesson.reschedule_offered"

    respond_by: Optional[datetime] = None


@dataclass
class TeacherSuspensionFlagged(LessonEvent):
    event_type: ClassVar[str] = "teacher.suspension_flagged"

    absence_count: int = 0

    @property
    def aggregate_id(self) -> str:
        return self.teacher_id
