"""Outbox event payloads and idempotency keys."""

from datetime import datetime, timezone
from decimal import Decimal
import json

from lessonbook.events import (
    LessonAutoCompleted,
    LessonBooked,
    LessonReminderDue,
    TeacherSuspensionFlagged,
)


class TestLessonEvents:
    def test_payload_is_json_safe(self) -> None:
        event = LessonBooked(
            lesson_id="L1",
            student_id="S1",
            teacher_id="T1",
            scheduled_start=datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc),
            total_amount=Decimal("5.50"),
            is_trial=True,
        )

        payload = event.to_dict()

        assert payload == {
            "lesson_id": "L1",
            "student_id": "S1",
            "teacher_id": "T1",
            "scheduled_start": "2026-03-04T15:00:00+00:00",
            "total_amount": "5.50",
            "is_trial": True,
        }
        json.dumps(payload)

    def test_notification_events_carry_lesson_and_parties(self) -> None:
        for event in (
            LessonReminderDue(lesson_id="L1", student_id="S1", teacher_id="T1"),
            LessonAutoCompleted(lesson_id="L1", student_id="S1", teacher_id="T1"),
        ):
            payload = event.to_dict()
            assert {"lesson_id", "student_id", "teacher_id"} <= set(payload)

    def test_idempotency_key_per_type_and_lesson(self) -> None:
        reminder = LessonReminderDue(lesson_id="L1", student_id="S1", teacher_id="T1")
        completed = LessonAutoCompleted(lesson_id="L1", student_id="S1", teacher_id="T1")

        assert reminder.idempotency_key == "lesson.reminder_due:L1"
        assert completed.idempotency_key == "lesson.auto_completed:L1"

    def test_suspension_flag_is_keyed_by_teacher(self) -> None:
        event = TeacherSuspensionFlagged(
            lesson_id="L9", student_id="S1", teacher_id="T1", absence_count=3
        )

        assert event.aggregate_id == "T1"
        assert event.idempotency_key == "teacher.suspension_flagged:T1"
