"""Cancellation refund policy evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.policies import LifecyclePolicy, default_lifecycle_policy
from ..models.lesson import AttendanceStatus, Lesson
from ..utils.time_helpers import hours_until
from .pricing_rules import round_money

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class RefundPolicyResult:
    refund_amount: Decimal
    refund_percent: int
    policy_basis: str
    hours_before_lesson: float

    @property
    def is_full_refund(self) -> bool:
        return self.refund_percent == 100


class RefundPolicyEngine:
    """Determines how much of a lesson's total is returned on cancellation."""

    def __init__(self, policy: Optional[LifecyclePolicy] = None):
        self.policy = policy or default_lifecycle_policy()

    def evaluate(self, lesson: Lesson, cancelled_by: str, now: datetime) -> RefundPolicyResult:
        total = round_money(lesson.total_amount)
        hours_before = hours_until(lesson.scheduled_start, now)
        window = self.policy.free_cancellation_window_hours

        if lesson.attendance_status == AttendanceStatus.TEACHER_ABSENT.value:
            return RefundPolicyResult(
                total, 100, "teacher absent: full refund (policy override)", hours_before
            )
        if cancelled_by == "teacher":
            return RefundPolicyResult(
                total, 100, "cancelled by teacher: full refund", hours_before
            )
        teacher_reschedules = int(lesson.teacher_reschedule_count or 0)
        if teacher_reschedules and teacher_reschedules >= self.policy.max_teacher_reschedules:
            return RefundPolicyResult(
                total, 100, "teacher reschedule allowance used: full refund", hours_before
            )
        if hours_before >= window:
            return RefundPolicyResult(
                total, 100, f">={window} hours before lesson: full refund", hours_before
            )
        return RefundPolicyResult(
            ZERO, 0, f"<{window} hours before lesson: no refund", hours_before
        )


__all__ = ["RefundPolicyEngine", "RefundPolicyResult"]
