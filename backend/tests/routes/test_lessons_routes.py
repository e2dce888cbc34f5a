"""Lesson lifecycle endpoints under /api/v1/lessons."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import ulid

BOOKING_DATE = "2030-01-07"

START = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


def book(client, teacher_id, student_id="student-1", **selection):
    response = client.post(
        "/api/v1/lessons",
        json={
            "student_id": student_id,
            "teacher_id": teacher_id,
            "selection": selection or {"duration_minutes": 60},
            "scheduled_date": BOOKING_DATE,
            "scheduled_time": "15:00:00",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestBookingRoutes:
    def test_confirm_booking(self, client, teacher) -> None:
        lesson = book(client, teacher.id)

        assert lesson["status"] == "scheduled"
        assert lesson["is_trial"] is True
        assert Decimal(lesson["total_amount"]) == Decimal("5.50")
        assert lesson["reminder_sent"] is False

    def test_unsupported_duration(self, client, teacher) -> None:
        response = client.post(
            "/api/v1/lessons",
            json={
                "student_id": "student-1",
                "teacher_id": teacher.id,
                "selection": {"duration_minutes": 45},
                "scheduled_date": BOOKING_DATE,
                "scheduled_time": "15:00:00",
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNSUPPORTED_DURATION"

    def test_list_and_detail(self, client, teacher) -> None:
        lesson = book(client, teacher.id)

        listed = client.get(
            "/api/v1/lessons", params={"student_id": "student-1", "status": "scheduled"}
        ).json()
        detail = client.get(f"/api/v1/lessons/{lesson['id']}")

        assert listed["total"] == 1
        assert listed["items"][0]["id"] == lesson["id"]
        assert detail.status_code == 200
        assert detail.json()["teacher_id"] == teacher.id

    def test_unknown_lesson(self, client) -> None:
        response = client.get(f"/api/v1/lessons/{ulid.ULID()}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "LESSON_NOT_FOUND"

    def test_malformed_lesson_id(self, client) -> None:
        assert client.get("/api/v1/lessons/not-a-lesson").status_code == 422

    def test_policies(self, client) -> None:
        body = client.get("/api/v1/lessons/policies").json()

        assert body["cancellation"]["free_cancellation_window_hours"] == 12
        assert body["completion"]["auto_complete_delay_hours"] == 48


class TestLifecycleRoutes:
    def test_complete_then_cancel_is_rejected(self, client, teacher) -> None:
        lesson = book(client, teacher.id)

        completed = client.post(
            f"/api/v1/lessons/{lesson['id']}/complete", json={"confirmed_by": "student"}
        )
        cancelled = client.post(
            f"/api/v1/lessons/{lesson['id']}/cancel", json={"cancelled_by": "student"}
        )

        assert completed.status_code == 200
        assert completed.json()["completion_status"] == "manual"
        assert cancelled.status_code == 422
        assert cancelled.json()["detail"]["code"] == "INVALID_TRANSITION"

    def test_cancel_with_full_refund(self, client, teacher) -> None:
        lesson = book(client, teacher.id)

        response = client.post(
            f"/api/v1/lessons/{lesson['id']}/cancel",
            json={"cancelled_by": "student", "reason": "exam week"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["refund_percent"] == 100
        assert Decimal(body["refund_amount"]) == Decimal("5.50")
        assert body["lesson"]["status"] == "cancelled"

    def test_teacher_reschedule(self, client, teacher) -> None:
        lesson = book(client, teacher.id)

        response = client.post(
            f"/api/v1/lessons/{lesson['id']}/reschedule",
            json={"new_date": "2030-01-09", "new_time": "10:00:00", "requested_by": "teacher"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["previous_lesson"]["status"] == "rescheduled"
        assert body["lesson"]["teacher_reschedule_count"] == 1
        assert body["lesson"]["rescheduled_from_lesson_id"] == lesson["id"]

    def test_report_teacher_absence(self, client, teacher, lesson_factory, monkeypatch) -> None:
        lesson = lesson_factory(teacher.id)
        monkeypatch.setattr(
            "lessonbook.services.lesson_lifecycle_service.utc_now",
            lambda: START + timedelta(minutes=10),
        )

        response = client.post(
            f"/api/v1/lessons/{lesson.id}/absence", json={"absent_party": "teacher"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["outcome"] == "teacher_absent"
        assert body["teacher_absence_count"] == 1
        assert body["lesson"]["attendance_status"] == "teacher_absent"

    def test_invalid_party(self, client, teacher, lesson_factory) -> None:
        lesson = lesson_factory(teacher.id)

        response = client.post(
            f"/api/v1/lessons/{lesson.id}/complete", json={"confirmed_by": "parent"}
        )

        assert response.status_code == 422
