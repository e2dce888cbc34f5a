# backend/lessonbook/services/lesson_lifecycle_service.py
"""
Lesson lifecycle for the booking engine.

States: scheduled -> completed (manual | auto), cancelled, or rescheduled
(the old record) with a fresh scheduled replacement. Every status write is a
compare-and-set on ``status = 'scheduled'`` so concurrent completions, timer
firings and cancellations resolve to the first writer; timer-driven actions
re-check state and no-op when the lesson has moved on.

Reminder, auto-completion and reschedule-response deadlines are durable
``LessonTimer`` rows evaluated by ``process_due_timers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    BusinessRuleException,
    DomainException,
    InvalidTransitionError,
    NotFoundException,
    RepositoryException,
    RescheduleLimitError,
    ServiceException,
    ValidationException,
)
from ..core.policies import (
    LifecyclePolicy,
    PricingPolicy,
    default_lifecycle_policy,
    default_pricing_policy,
)
from ..events.lesson_events import (
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
from ..models.lesson import AttendanceStatus, CompletionStatus, Lesson, LessonStatus
from ..models.lesson_timer import TimerKind
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.lesson_repository import LessonFilter
from ..schemas.lesson import LessonCreate
from ..utils.time_helpers import combine_utc, ensure_utc, hours_until, utc_now
from .base import BaseService
from .booking_price_calculator import BookingPricingService
from .refund_policy_engine import RefundPolicyEngine, RefundPolicyResult

logger = logging.getLogger(__name__)

SCHEDULED = LessonStatus.SCHEDULED.value


@dataclass(frozen=True)
class CancellationOutcome:
    lesson: Lesson
    refund: RefundPolicyResult


@dataclass(frozen=True)
class RescheduleOutcome:
    previous_lesson: Lesson
    lesson: Lesson


@dataclass(frozen=True)
class AbsenceOutcome:
    lesson: Lesson
    outcome: str  # reschedule_offered | auto_completed | teacher_absent
    teacher_absence_count: Optional[int] = None
    teacher_suspension_flagged: bool = False


class LessonLifecycleService(BaseService):
    """Owns every state change of a booked lesson."""

    def __init__(
        self,
        db: Session,
        policy: Optional[LifecyclePolicy] = None,
        pricing_policy: Optional[PricingPolicy] = None,
    ):
        super().__init__(db)
        self.policy = policy or default_lifecycle_policy()
        self.pricing_policy = pricing_policy or default_pricing_policy()
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.timer_repository = RepositoryFactory.create_lesson_timer_repository(db)
        self.outbox_repository = RepositoryFactory.create_event_outbox_repository(db)
        self.pricing_service = BookingPricingService(db, self.pricing_policy)
        self.refund_engine = RefundPolicyEngine(self.policy)

    # ------------------------------------------------------------------ reads

    def get_lesson(self, lesson_id: str) -> Lesson:
        return self.lesson_repository.get_lesson(lesson_id)

    def list_lessons(self, lesson_filter: LessonFilter) -> List[Lesson]:
        if lesson_filter.upcoming and lesson_filter.now is None:
            lesson_filter.now = utc_now()
        return self.lesson_repository.get_lessons(lesson_filter)

    # ---------------------------------------------------------------- booking

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, data: LessonCreate, now: Optional[datetime] = None) -> Lesson:
        """
        Price the selection and persist the lesson, its timers and the booked event.

        All-or-nothing: a failure rolls everything back and callers retry the
        whole booking.
        """
        now = self._now(now)
        start = combine_utc(data.scheduled_date, data.scheduled_time)
        if start <= now:
            raise ValidationException(
                "Lessons must be booked for a future time",
                code="LESSON_IN_PAST",
                details={"scheduled_start": start.isoformat()},
            )

        try:
            with self.transaction():
                quote = self.pricing_service.quote(data.student_id, data.teacher_id, data.selection)
                end = start + timedelta(minutes=quote.duration_minutes)
                lesson = self.lesson_repository.create_lesson(
                    student_id=data.student_id,
                    teacher_id=data.teacher_id,
                    scheduled_date=data.scheduled_date,
                    scheduled_time=data.scheduled_time,
                    duration_minutes=quote.duration_minutes,
                    lesson_type=quote.lesson_type,
                    lesson_quantity=quote.lesson_quantity,
                    group_size=quote.group_size,
                    is_trial=quote.is_trial,
                    base_price=quote.base_price,
                    commission_amount=quote.commission_amount,
                    tax_amount=quote.tax_amount,
                    total_amount=quote.total_amount,
                    teacher_earnings=quote.teacher_earnings,
                    status=SCHEDULED,
                    completion_status=CompletionStatus.PENDING.value,
                    attendance_status=AttendanceStatus.PENDING.value,
                    auto_complete_at=end + timedelta(hours=self.policy.auto_complete_delay_hours),
                    reminder_sent=False,
                    reschedule_count=0,
                    teacher_reschedule_count=0,
                )
                self._schedule_lesson_timers(lesson)
                self._emit(
                    LessonBooked(
                        lesson_id=lesson.id,
                        student_id=lesson.student_id,
                        teacher_id=lesson.teacher_id,
                        scheduled_start=start,
                        total_amount=lesson.total_amount,
                        is_trial=bool(lesson.is_trial),
                    )
                )
        except RepositoryException as exc:
            raise ServiceException(
                "Booking could not be saved; please retry", code="BOOKING_FAILED"
            ) from exc

        prometheus_metrics.record_lesson_transition(SCHEDULED, "booking")
        self.logger.info(
            f"Booked {lesson.lesson_type} lesson {lesson.id} for student {lesson.student_id} "
            f"with teacher {lesson.teacher_id} at {start.isoformat()} "
            f"(total={lesson.total_amount}, trial={lesson.is_trial})"
        )
        return lesson

    # -------------------------------------------------------------- reminders

    @BaseService.measure_operation("send_reminder")
    def send_reminder(self, lesson_id: str, now: Optional[datetime] = None) -> bool:
        """Emit the reminder event once, before the lesson starts; later calls are no-ops."""
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED or lesson.reminder_sent:
            self.logger.debug(f"Reminder for lesson {lesson_id} skipped ({lesson.status})")
            return False
        if now >= lesson.scheduled_start:
            self.logger.debug(f"Reminder for lesson {lesson_id} is stale; lesson already started")
            return False

        with self.transaction():
            if not self.lesson_repository.mark_reminder_sent(lesson_id):
                return False
            self._emit(
                LessonReminderDue(
                    lesson_id=lesson.id,
                    student_id=lesson.student_id,
                    teacher_id=lesson.teacher_id,
                    scheduled_start=lesson.scheduled_start,
                )
            )
        self.logger.info(f"Reminder queued for lesson {lesson_id}")
        return True

    # ------------------------------------------------------------- completion

    @BaseService.measure_operation("complete_lesson")
    def complete_lesson(
        self, lesson_id: str, confirmed_by: str, now: Optional[datetime] = None
    ) -> Lesson:
        """
        Manual completion by either party.

        A confirmation arriving at or after ``auto_complete_at`` completes the
        lesson as auto instead.

        Completing an already completed lesson returns it unchanged so the
        slower of two simultaneous confirmations never sees an error.
        """
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status == LessonStatus.COMPLETED.value:
            self.logger.debug(f"Lesson {lesson_id} already completed; ignoring {confirmed_by}")
            return lesson
        if lesson.status != SCHEDULED:
            raise InvalidTransitionError(lesson_id, str(lesson.status), "complete")

        due = lesson.auto_complete_at_utc
        if (
            due is not None
            and now >= due
            and lesson.attendance_status != AttendanceStatus.TEACHER_ABSENT.value
        ):
            # Confirmation window has closed; the lesson completes as auto
            self._auto_complete(lesson, now, reason="no_confirmation")
            lesson = self.lesson_repository.refresh(lesson)
            if lesson.status != LessonStatus.COMPLETED.value:
                raise InvalidTransitionError(lesson_id, str(lesson.status), "complete")
            return lesson

        attendance = lesson.attendance_status
        if attendance == AttendanceStatus.PENDING.value:
            attendance = AttendanceStatus.ATTENDED.value

        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson_id,
                SCHEDULED,
                status=LessonStatus.COMPLETED.value,
                completion_status=CompletionStatus.MANUAL.value,
                attendance_status=attendance,
                completed_at=now,
            )
            if won:
                self.timer_repository.cancel_pending_for_lesson(lesson_id)
                self._emit(
                    LessonCompleted(
                        lesson_id=lesson.id,
                        student_id=lesson.student_id,
                        teacher_id=lesson.teacher_id,
                        confirmed_by=confirmed_by,
                        completed_at=now,
                    )
                )

        lesson = self.lesson_repository.refresh(lesson)
        if not won:
            if lesson.status == LessonStatus.COMPLETED.value:
                return lesson
            raise InvalidTransitionError(lesson_id, str(lesson.status), "complete")

        prometheus_metrics.record_lesson_transition(LessonStatus.COMPLETED.value, confirmed_by)
        self.logger.info(f"Lesson {lesson_id} completed manually by {confirmed_by}")
        return lesson

    @BaseService.measure_operation("auto_complete_lesson")
    def auto_complete_lesson(self, lesson_id: str, now: Optional[datetime] = None) -> bool:
        """Complete a still-scheduled lesson once ``auto_complete_at`` has passed."""
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED:
            self.logger.debug(f"Auto-complete for lesson {lesson_id} skipped ({lesson.status})")
            return False
        due = lesson.auto_complete_at_utc
        if due is None or now < due:
            self.logger.debug(f"Auto-complete for lesson {lesson_id} not due until {due}")
            return False
        if lesson.attendance_status == AttendanceStatus.TEACHER_ABSENT.value:
            # Student decides between refund and reschedule
            return False
        return self._auto_complete(lesson, now, reason="no_confirmation")

    def _auto_complete(self, lesson: Lesson, now: datetime, reason: str, **fields: Any) -> bool:
        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson.id,
                SCHEDULED,
                status=LessonStatus.COMPLETED.value,
                completion_status=CompletionStatus.AUTO.value,
                completed_at=now,
                **fields,
            )
            if won:
                self.timer_repository.cancel_pending_for_lesson(lesson.id)
                self._emit(
                    LessonAutoCompleted(
                        lesson_id=lesson.id,
                        student_id=lesson.student_id,
                        teacher_id=lesson.teacher_id,
                        completed_at=now,
                        reason=reason,
                    )
                )
        if won:
            prometheus_metrics.record_lesson_transition(LessonStatus.COMPLETED.value, "timer")
            self.logger.info(f"Lesson {lesson.id} auto-completed ({reason})")
        return won

    # ----------------------------------------------------------- cancellation

    @BaseService.measure_operation("cancel_lesson")
    def cancel_lesson(
        self,
        lesson_id: str,
        cancelled_by: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CancellationOutcome:
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED:
            raise InvalidTransitionError(lesson_id, str(lesson.status), "cancel")

        refund = self.refund_engine.evaluate(lesson, cancelled_by, now)
        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson_id,
                SCHEDULED,
                status=LessonStatus.CANCELLED.value,
                cancelled_at=now,
                cancelled_by=cancelled_by,
                cancellation_reason=reason,
                refund_amount=refund.refund_amount,
            )
            if not won:
                current = self.lesson_repository.refresh(lesson)
                raise InvalidTransitionError(lesson_id, str(current.status), "cancel")
            self.timer_repository.cancel_pending_for_lesson(lesson_id)
            self._emit(
                LessonCancelled(
                    lesson_id=lesson.id,
                    student_id=lesson.student_id,
                    teacher_id=lesson.teacher_id,
                    cancelled_by=cancelled_by,
                    cancelled_at=now,
                    refund_amount=refund.refund_amount,
                    policy_basis=refund.policy_basis,
                )
            )

        prometheus_metrics.record_lesson_transition(LessonStatus.CANCELLED.value, cancelled_by)
        self.logger.info(
            f"Lesson {lesson_id} cancelled by {cancelled_by} "
            f"{refund.hours_before_lesson:.1f}h before start; refund={refund.refund_amount}"
        )
        return CancellationOutcome(lesson=self.lesson_repository.refresh(lesson), refund=refund)

    # ----------------------------------------------------------- rescheduling

    @BaseService.measure_operation("reschedule_lesson")
    def reschedule_lesson(
        self,
        lesson_id: str,
        new_date: date,
        new_time: time,
        requested_by: str,
        now: Optional[datetime] = None,
    ) -> RescheduleOutcome:
        """
        Move a scheduled lesson to a new slot.

        The old record becomes ``rescheduled`` and a replacement lesson with the
        same price snapshot is created. Teacher reschedules, including a
        student accepting a reschedule offered after missing the lesson, count
        against the teacher's allowance.
        """
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED:
            raise InvalidTransitionError(lesson_id, str(lesson.status), "reschedule")

        new_start = combine_utc(new_date, new_time)
        if new_start <= now:
            raise ValidationException(
                "The new lesson time must be in the future",
                code="RESCHEDULE_IN_PAST",
                details={"new_start": new_start.isoformat()},
            )

        counts_against_teacher = self._check_reschedule_allowed(
            lesson, new_start, requested_by, now
        )

        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson_id, SCHEDULED, status=LessonStatus.RESCHEDULED.value
            )
            if not won:
                current = self.lesson_repository.refresh(lesson)
                raise InvalidTransitionError(lesson_id, str(current.status), "reschedule")
            self.timer_repository.cancel_pending_for_lesson(lesson_id)

            new_end = new_start + timedelta(minutes=int(lesson.duration_minutes))
            replacement = self.lesson_repository.create_lesson(
                student_id=lesson.student_id,
                teacher_id=lesson.teacher_id,
                scheduled_date=new_date,
                scheduled_time=new_time,
                duration_minutes=lesson.duration_minutes,
                lesson_type=lesson.lesson_type,
                lesson_quantity=lesson.lesson_quantity,
                group_size=lesson.group_size,
                is_trial=lesson.is_trial,
                base_price=lesson.base_price,
                commission_amount=lesson.commission_amount,
                tax_amount=lesson.tax_amount,
                total_amount=lesson.total_amount,
                teacher_earnings=lesson.teacher_earnings,
                status=SCHEDULED,
                completion_status=CompletionStatus.PENDING.value,
                attendance_status=AttendanceStatus.PENDING.value,
                auto_complete_at=new_end + timedelta(hours=self.policy.auto_complete_delay_hours),
                reminder_sent=False,
                reschedule_count=int(lesson.reschedule_count) + 1,
                teacher_reschedule_count=int(lesson.teacher_reschedule_count)
                + (1 if counts_against_teacher else 0),
                rescheduled_from_lesson_id=lesson.id,
            )
            self._schedule_lesson_timers(replacement)
            self._emit(
                LessonRescheduled(
                    lesson_id=lesson.id,
                    student_id=lesson.student_id,
                    teacher_id=lesson.teacher_id,
                    new_lesson_id=replacement.id,
                    requested_by=requested_by,
                    new_scheduled_start=new_start,
                )
            )

        prometheus_metrics.record_lesson_transition(LessonStatus.RESCHEDULED.value, requested_by)
        self.logger.info(
            f"Lesson {lesson_id} rescheduled by {requested_by} to {new_start.isoformat()} "
            f"as {replacement.id}"
        )
        return RescheduleOutcome(
            previous_lesson=self.lesson_repository.refresh(lesson), lesson=replacement
        )

    def _check_reschedule_allowed(
        self, lesson: Lesson, new_start: datetime, requested_by: str, now: datetime
    ) -> bool:
        """Validate a reschedule request; returns whether it uses the teacher's allowance."""
        offer_open = self._reschedule_offer_open(lesson, now)
        teacher_absent = lesson.attendance_status == AttendanceStatus.TEACHER_ABSENT.value

        if requested_by == "teacher" or offer_open:
            if int(lesson.teacher_reschedule_count) >= self.policy.max_teacher_reschedules:
                raise RescheduleLimitError(lesson.id, self.policy.max_teacher_reschedules)
            window_end = lesson.scheduled_start + timedelta(days=self.policy.reschedule_window_days)
            if new_start > window_end:
                raise ValidationException(
                    f"Rescheduled lessons must start within "
                    f"{self.policy.reschedule_window_days} days of the original time",
                    code="RESCHEDULE_OUTSIDE_WINDOW",
                    details={
                        "new_start": new_start.isoformat(),
                        "latest_start": window_end.isoformat(),
                    },
                )
            return True

        if lesson.attendance_status == AttendanceStatus.STUDENT_ABSENT.value:
            raise BusinessRuleException(
                "The reschedule offer for this missed lesson has expired",
                code="RESCHEDULE_OFFER_EXPIRED",
                details={"lesson_id": lesson.id},
            )
        if not teacher_absent:
            hours_before = hours_until(lesson.scheduled_start, now)
            if hours_before < self.policy.free_cancellation_window_hours:
                raise BusinessRuleException(
                    f"Lessons can only be rescheduled at least "
                    f"{self.policy.free_cancellation_window_hours} hours before they start",
                    code="RESCHEDULE_TOO_LATE",
                    details={"lesson_id": lesson.id, "hours_before_lesson": round(hours_before, 2)},
                )
        return False

    @staticmethod
    def _reschedule_offer_open(lesson: Lesson, now: datetime) -> bool:
        if lesson.attendance_status != AttendanceStatus.STUDENT_ABSENT.value:
            return False
        due = ensure_utc(lesson.student_response_due_at)
        return due is not None and now <= due

    # ---------------------------------------------------------------- absence

    def report_absence(
        self, lesson_id: str, absent_party: str, now: Optional[datetime] = None
    ) -> AbsenceOutcome:
        if absent_party == "teacher":
            return self.report_teacher_absence(lesson_id, now=now)
        return self.report_student_absence(lesson_id, now=now)

    def _load_for_absence(self, lesson_id: str, now: datetime) -> Lesson:
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED:
            raise InvalidTransitionError(lesson_id, str(lesson.status), "report an absence for")
        if now < lesson.scheduled_start:
            raise ValidationException(
                "Absences can only be reported once the lesson has started",
                code="ABSENCE_BEFORE_START",
                details={"scheduled_start": lesson.scheduled_start.isoformat()},
            )
        if lesson.attendance_status != AttendanceStatus.PENDING.value:
            raise BusinessRuleException(
                "An absence has already been reported for this lesson",
                code="ABSENCE_ALREADY_REPORTED",
                details={"attendance_status": lesson.attendance_status},
            )
        return lesson

    @BaseService.measure_operation("report_student_absence")
    def report_student_absence(
        self, lesson_id: str, now: Optional[datetime] = None
    ) -> AbsenceOutcome:
        """
        Student missed the lesson.

        While the teacher still has a reschedule available the student gets a
        response window to accept one; silence until then completes the lesson.
        Without an available reschedule the lesson completes immediately.
        """
        now = self._now(now)
        lesson = self._load_for_absence(lesson_id, now)

        if int(lesson.teacher_reschedule_count) >= self.policy.max_teacher_reschedules:
            won = self._auto_complete(
                lesson,
                now,
                reason="student_absent",
                attendance_status=AttendanceStatus.STUDENT_ABSENT.value,
            )
            if not won:
                raise InvalidTransitionError(lesson_id, "not scheduled", "report an absence for")
            return AbsenceOutcome(
                lesson=self.lesson_repository.refresh(lesson), outcome="auto_completed"
            )

        respond_by = now + timedelta(hours=self.policy.student_reschedule_response_hours)
        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson_id,
                SCHEDULED,
                attendance_status=AttendanceStatus.STUDENT_ABSENT.value,
                student_response_due_at=respond_by,
            )
            if not won:
                raise InvalidTransitionError(lesson_id, "not scheduled", "report an absence for")
            self.timer_repository.schedule(
                lesson_id, TimerKind.RESCHEDULE_RESPONSE.value, respond_by
            )
            self._emit(
                LessonRescheduleOffered(
                    lesson_id=lesson.id,
                    student_id=lesson.student_id,
                    teacher_id=lesson.teacher_id,
                    respond_by=respond_by,
                )
            )
        self.logger.info(
            f"Student absent from lesson {lesson_id}; reschedule offered until "
            f"{respond_by.isoformat()}"
        )
        return AbsenceOutcome(
            lesson=self.lesson_repository.refresh(lesson), outcome="reschedule_offered"
        )

    @BaseService.measure_operation("report_teacher_absence")
    def report_teacher_absence(
        self, lesson_id: str, now: Optional[datetime] = None
    ) -> AbsenceOutcome:
        """
        Teacher missed the lesson.

        The lesson stays scheduled so the student can cancel for a full refund
        or reschedule; pending timers are dropped so it never auto-completes.
        """
        now = self._now(now)
        lesson = self._load_for_absence(lesson_id, now)

        with self.transaction():
            won = self.lesson_repository.transition_status(
                lesson_id, SCHEDULED, attendance_status=AttendanceStatus.TEACHER_ABSENT.value
            )
            if not won:
                raise InvalidTransitionError(lesson_id, "not scheduled", "report an absence for")
            self.timer_repository.cancel_pending_for_lesson(lesson_id)
            absence_count = self.teacher_repository.increment_absence(lesson.teacher_id)
            flagged_now = False
            if absence_count >= self.policy.teacher_absence_suspension_threshold:
                flagged_now = self.teacher_repository.flag_for_suspension(lesson.teacher_id, now)
                if flagged_now:
                    self._emit(
                        TeacherSuspensionFlagged(
                            lesson_id=lesson.id,
                            student_id=lesson.student_id,
                            teacher_id=lesson.teacher_id,
                            absence_count=absence_count,
                        )
                    )

        if flagged_now:
            self.logger.warning(
                f"Teacher {lesson.teacher_id} flagged for suspension after "
                f"{absence_count} absences"
            )
        else:
            self.logger.info(
                f"Teacher {lesson.teacher_id} absent from lesson {lesson_id} "
                f"(absence {absence_count})"
            )
        return AbsenceOutcome(
            lesson=self.lesson_repository.refresh(lesson),
            outcome="teacher_absent",
            teacher_absence_count=absence_count,
            teacher_suspension_flagged=(
                absence_count >= self.policy.teacher_absence_suspension_threshold
            ),
        )

    @BaseService.measure_operation("expire_reschedule_offer")
    def expire_reschedule_offer(self, lesson_id: str, now: Optional[datetime] = None) -> bool:
        """Complete a missed lesson whose reschedule offer went unanswered."""
        now = self._now(now)
        lesson = self.lesson_repository.get_lesson(lesson_id)
        if lesson.status != SCHEDULED:
            return False
        if lesson.attendance_status != AttendanceStatus.STUDENT_ABSENT.value:
            return False
        due = ensure_utc(lesson.student_response_due_at)
        if due is None or now < due:
            return False
        return self._auto_complete(lesson, now, reason="student_absent")

    # ----------------------------------------------------------------- timers

    @BaseService.measure_operation("process_due_timers")
    def process_due_timers(
        self, now: Optional[datetime] = None, limit: int = 500
    ) -> Dict[str, int]:
        """
        Evaluate every pending timer due at ``now``.

        Each timer is claimed (pending -> fired) in the same transaction as
        its action, so overlapping scans act at most once per timer.
        """
        now = self._now(now)
        stats = {"due": 0, "applied": 0, "noop": 0, "failed": 0}
        for timer in self.timer_repository.get_due(now, limit=limit):
            stats["due"] += 1
            kind, lesson_id, timer_id = str(timer.kind), str(timer.lesson_id), str(timer.id)
            try:
                if not self.timer_repository.claim(timer_id, now):
                    self.db.rollback()
                    stats["noop"] += 1
                    continue
                applied = self._fire_timer(kind, lesson_id, now)
                self.db.commit()
            except DomainException as exc:
                self.db.rollback()
                stats["failed"] += 1
                self.logger.warning(f"Timer {kind} for lesson {lesson_id} failed: {exc.message}")
                if isinstance(exc, (NotFoundException, InvalidTransitionError)):
                    # Retrying cannot succeed; retire the timer so later scans skip it
                    self.timer_repository.claim(timer_id, now)
                    self.db.commit()
                continue

            prometheus_metrics.record_timer(kind, applied)
            stats["applied" if applied else "noop"] += 1

        if stats["due"]:
            self.logger.info(f"Processed lesson timers: {stats}")
        return stats

    def _fire_timer(self, kind: str, lesson_id: str, now: datetime) -> bool:
        if kind == TimerKind.REMINDER.value:
            return self.send_reminder(lesson_id, now=now)
        if kind == TimerKind.AUTO_COMPLETE.value:
            return self.auto_complete_lesson(lesson_id, now=now)
        if kind == TimerKind.RESCHEDULE_RESPONSE.value:
            return self.expire_reschedule_offer(lesson_id, now=now)
        self.logger.error(f"Unknown timer kind {kind} for lesson {lesson_id}")
        return False

    # ---------------------------------------------------------------- helpers

    def booking_policies(self) -> Dict[str, Dict[str, object]]:
        """Policy document rendered on the booking and lesson pages."""
        pricing = self.pricing_policy
        lifecycle = self.policy
        return {
            "pricing": {
                "commission_rate": str(pricing.commission_rate),
                "tax_rate": str(pricing.tax_rate),
                "trial_enabled": pricing.trial_enabled,
                "trial_price": str(pricing.trial_price),
                "max_trial_teachers": pricing.max_trial_teachers,
                "package_min_lessons": pricing.package_min_lessons,
                "package_max_lessons": pricing.package_max_lessons,
                "package_discount_ladder": {
                    str(k): str(v) for k, v in sorted(pricing.package_discount_ladder.items())
                },
            },
            "cancellation": {
                "free_cancellation_window_hours": lifecycle.free_cancellation_window_hours,
                "refund_inside_window_percent": 0,
                "teacher_absence_refund_percent": 100,
            },
            "rescheduling": {
                "max_teacher_reschedules": lifecycle.max_teacher_reschedules,
                "reschedule_window_days": lifecycle.reschedule_window_days,
                "student_notice_hours": lifecycle.free_cancellation_window_hours,
            },
            "completion": {
                "auto_complete_delay_hours": lifecycle.auto_complete_delay_hours,
                "reminder_lead_minutes": lifecycle.reminder_lead_minutes,
            },
            "absence": {
                "student_reschedule_response_hours": lifecycle.student_reschedule_response_hours,
                "teacher_absence_suspension_threshold": (
                    lifecycle.teacher_absence_suspension_threshold
                ),
            },
        }

    def _schedule_lesson_timers(self, lesson: Lesson) -> None:
        start = lesson.scheduled_start
        self.timer_repository.schedule(
            lesson.id,
            TimerKind.REMINDER.value,
            start - timedelta(minutes=self.policy.reminder_lead_minutes),
        )
        self.timer_repository.schedule(
            lesson.id, TimerKind.AUTO_COMPLETE.value, ensure_utc(lesson.auto_complete_at)
        )

    def _emit(self, event: LessonEvent) -> None:
        self.outbox_repository.enqueue(
            event.event_type,
            event.aggregate_id,
            payload=event.to_dict(),
            idempotency_key=event.idempotency_key,
        )
        prometheus_metrics.record_outbox_event(event.event_type)

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else utc_now()


__all__ = [
    "AbsenceOutcome",
    "CancellationOutcome",
    "LessonLifecycleService",
    "RescheduleOutcome",
]
