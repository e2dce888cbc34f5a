"""Unit tests for cancellation refund evaluation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from lessonbook.core.policies import LifecyclePolicy
from lessonbook.services.refund_policy_engine import RefundPolicyEngine

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def lesson_starting_in(
    hours: float, attendance_status: str = "pending", teacher_reschedule_count: int = 0
) -> SimpleNamespace:
    return SimpleNamespace(
        scheduled_start=NOW + timedelta(hours=hours),
        total_amount=Decimal("33.00"),
        attendance_status=attendance_status,
        teacher_reschedule_count=teacher_reschedule_count,
    )


@pytest.fixture
def engine() -> RefundPolicyEngine:
    return RefundPolicyEngine(LifecyclePolicy())


class TestRefundPolicyEngine:
    def test_thirteen_hours_out_refunds_in_full(self, engine) -> None:
        result = engine.evaluate(lesson_starting_in(13), "student", NOW)

        assert result.refund_amount == Decimal("33.00")
        assert result.refund_percent == 100
        assert result.is_full_refund is True
        assert result.hours_before_lesson == pytest.approx(13)

    def test_eleven_hours_out_refunds_nothing(self, engine) -> None:
        result = engine.evaluate(lesson_starting_in(11), "student", NOW)

        assert result.refund_amount == Decimal("0.00")
        assert result.refund_percent == 0
        assert result.is_full_refund is False

    def test_exactly_at_window_is_free(self, engine) -> None:
        result = engine.evaluate(lesson_starting_in(12), "student", NOW)

        assert result.refund_percent == 100

    def test_teacher_cancellation_always_refunds_student(self, engine) -> None:
        result = engine.evaluate(lesson_starting_in(1), "teacher", NOW)

        assert result.refund_amount == Decimal("33.00")
        assert "teacher" in result.policy_basis

    def test_teacher_absence_overrides_window(self, engine) -> None:
        lesson = lesson_starting_in(-0.5, attendance_status="teacher_absent")

        result = engine.evaluate(lesson, "student", NOW)

        assert result.refund_percent == 100
        assert "absent" in result.policy_basis

    def test_configured_window(self) -> None:
        engine = RefundPolicyEngine(LifecyclePolicy(free_cancellation_window_hours=24))

        assert engine.evaluate(lesson_starting_in(13), "student", NOW).refund_percent == 0

    def test_used_teacher_reschedule_allowance_refunds_in_full(self, engine) -> None:
        lesson = lesson_starting_in(10, teacher_reschedule_count=1)

        result = engine.evaluate(lesson, "student", NOW)

        assert result.refund_amount == Decimal("33.00")
        assert result.refund_percent == 100
        assert "reschedule allowance" in result.policy_basis

    def test_student_reschedules_do_not_unlock_refund(self, engine) -> None:
        lesson = lesson_starting_in(10, teacher_reschedule_count=0)

        assert engine.evaluate(lesson, "student", NOW).refund_percent == 0
