from datetime import date
from decimal import Decimal

import pytest

from lessonbook.core.exceptions import NotFoundException
from lessonbook.schemas.pricing import BookingSelection, RateCard, TeacherPricing
from lessonbook.services.booking_price_calculator import BookingPricingService


@pytest.fixture
def service(db) -> BookingPricingService:
    return BookingPricingService(db)


class TestQuote:
    def test_first_lesson_quotes_trial(self, service, teacher) -> None:
        quote = service.quote("student-1", teacher.id, BookingSelection())

        assert quote.is_trial is True
        assert quote.total_amount == Decimal("5.50")

    def test_history_from_database_ends_trial(self, service, teacher, lesson_factory) -> None:
        lesson_factory(teacher.id, is_trial=True, base_price=Decimal("5.00"))

        quote = service.quote("student-1", teacher.id, BookingSelection(duration_minutes=30))

        assert quote.is_trial is False
        assert quote.base_price == Decimal("18.00")
        assert quote.total_amount == Decimal("19.80")

    def test_without_teacher_not_ready(self, service) -> None:
        quote = service.quote("student-1", None, BookingSelection())

        assert quote.is_ready is False
        assert quote.total_amount == Decimal("0")

    def test_unknown_teacher(self, service) -> None:
        with pytest.raises(NotFoundException):
            service.quote("student-1", "missing", BookingSelection())


class TestTrials:
    def test_eligibility(self, service, teacher, teacher_factory, lesson_factory) -> None:
        other = teacher_factory(display_name="John Park")
        lesson_factory(teacher.id, is_trial=True, base_price=Decimal("5.00"))

        same = service.trial_eligibility("student-1", teacher.id)
        fresh = service.trial_eligibility("student-1", other.id)

        assert same.eligible is False
        assert fresh.eligible is True
        assert fresh.teachers_trialed == [teacher.id]
        assert fresh.trials_remaining == 2
        assert fresh.trial_price == Decimal("5.00")

    def test_analytics(self, service, teacher, lesson_factory) -> None:
        lesson_factory(teacher.id, student_id="s1", is_trial=True, base_price=Decimal("5.00"))
        lesson_factory(teacher.id, student_id="s1", scheduled_date=date(2026, 3, 11))
        lesson_factory(teacher.id, student_id="s2", is_trial=True, base_price=Decimal("5.00"))

        analytics = service.trial_analytics()

        assert analytics.total_trial_lessons == 2
        assert analytics.unique_trial_students == 2
        assert analytics.converted_students == 1
        assert analytics.conversion_rate == 0.5


class TestTeacherPricing:
    def test_update_and_read_back(self, service, teacher) -> None:
        updated = service.update_teacher_pricing(
            teacher.id, TeacherPricing(rate_card=RateCard.from_mapping({45: 25}))
        )

        assert updated.rate_card.durations == [45]
        assert service.get_teacher_pricing(teacher.id).rate_card.price_for(45) == Decimal("25")
