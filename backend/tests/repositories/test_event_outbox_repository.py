"""Idempotent outbox enqueue."""

from lessonbook.models.event_outbox import EventOutboxStatus
from lessonbook.repositories import EventOutboxRepository


class TestEventOutboxRepository:
    def test_enqueue_is_idempotent(self, db) -> None:
        repo = EventOutboxRepository(db)

        first = repo.enqueue("lesson.booked", "L1", payload={"total_amount": "5.50"})
        second = repo.enqueue("lesson.booked", "L1", payload={"total_amount": "99.00"})
        db.commit()

        assert first.id == second.id
        assert first.idempotency_key == "lesson.booked:L1"
        assert second.payload == {"total_amount": "5.50"}
        assert first.status == EventOutboxStatus.PENDING.value

    def test_explicit_key_and_aggregate_listing(self, db) -> None:
        repo = EventOutboxRepository(db)
        repo.enqueue("lesson.booked", "L1", idempotency_key="booked-L1")
        repo.enqueue("lesson.cancelled", "L1")
        repo.enqueue("lesson.booked", "L2")
        db.commit()

        events = repo.list_for_aggregate("L1")

        assert sorted(event.event_type for event in events) == [
            "lesson.booked",
            "lesson.cancelled",
        ]
        assert {event.idempotency_key for event in events} == {
            "booked-L1",
            "lesson.cancelled:L1",
        }
