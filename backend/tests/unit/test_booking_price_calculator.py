"""Unit tests for calculate_booking_price."""

from decimal import Decimal
from types import SimpleNamespace

from pydantic import ValidationError
import pytest

from lessonbook.core.exceptions import NoGroupRateError, UnsupportedDurationError
from lessonbook.core.policies import PricingPolicy
from lessonbook.schemas.pricing import (
    BookingSelection,
    GroupRate,
    PackageOffer,
    PriceQuote,
    RateCard,
)
from lessonbook.services.booking_price_calculator import calculate_booking_price

POLICY = PricingPolicy()


def trial_with(teacher_id: str) -> SimpleNamespace:
    return SimpleNamespace(
        student_id="student-1",
        teacher_id=teacher_id,
        base_price=Decimal("5.00"),
        lesson_type="single",
        is_trial=True,
        status="completed",
    )


@pytest.fixture
def rate_card() -> RateCard:
    return RateCard.from_mapping({30: 18, 60: 30})


class TestCalculateBookingPrice:
    def test_first_lesson_with_maria_is_a_trial(self, rate_card) -> None:
        quote = calculate_booking_price(
            BookingSelection(lesson_type="single", duration_minutes=60),
            "maria",
            [],
            rate_card,
            policy=POLICY,
        )

        assert quote.is_trial is True
        assert quote.base_price == Decimal("5.00")
        assert quote.commission_amount == Decimal("1.00")
        assert quote.tax_amount == Decimal("0.50")
        assert quote.total_amount == Decimal("5.50")
        assert quote.teacher_earnings == Decimal("4.00")
        assert quote.lesson_quantity == 1
        assert quote.group_size is None

    def test_second_lesson_with_same_teacher_is_full_price(self, rate_card) -> None:
        quote = calculate_booking_price(
            BookingSelection(duration_minutes=60),
            "maria",
            [trial_with("maria")],
            rate_card,
            policy=POLICY,
        )

        assert quote.is_trial is False
        assert quote.base_price == Decimal("30.00")
        assert quote.commission_amount == Decimal("6.00")
        assert quote.tax_amount == Decimal("3.00")
        assert quote.total_amount == Decimal("33.00")
        assert quote.teacher_earnings == Decimal("24.00")

    def test_no_teacher_returns_not_ready_quote(self, rate_card) -> None:
        quote = calculate_booking_price(BookingSelection(), None, [], rate_card, policy=POLICY)

        assert quote == PriceQuote.not_ready()
        assert quote.is_trial is False
        assert quote.total_amount == Decimal("0.00")
        assert quote.is_ready is False

    def test_trial_still_requires_offered_duration(self, rate_card) -> None:
        with pytest.raises(UnsupportedDurationError):
            calculate_booking_price(
                BookingSelection(duration_minutes=45), "maria", [], rate_card, policy=POLICY
            )

    def test_package_is_never_trial_priced(self, rate_card) -> None:
        quote = calculate_booking_price(
            BookingSelection(lesson_type="package", duration_minutes=60, lesson_quantity=10),
            "maria",
            [],
            rate_card,
            policy=POLICY,
        )

        assert quote.is_trial is False
        assert quote.base_price == Decimal("270.00")
        assert quote.total_amount == Decimal("297.00")
        assert quote.teacher_earnings == Decimal("216.00")
        assert quote.lesson_quantity == 10
        assert quote.package is not None
        assert quote.package.original_price == Decimal("300.00")

    def test_package_uses_teacher_offer(self, rate_card) -> None:
        quote = calculate_booking_price(
            BookingSelection(lesson_type="package", duration_minutes=30, lesson_quantity=5),
            "maria",
            [],
            rate_card,
            package_offers=[PackageOffer(lesson_count=5, discount_percent=Decimal("10"))],
            policy=POLICY,
        )

        assert quote.base_price == Decimal("81.00")
        assert quote.package.discount_source == "teacher_offer"

    def test_group_seat_price(self, rate_card) -> None:
        quote = calculate_booking_price(
            BookingSelection(lesson_type="group", duration_minutes=60, group_size=3),
            "maria",
            [],
            rate_card,
            group_rates=[GroupRate(group_size=3, price_per_person=20)],
            policy=POLICY,
        )

        assert quote.is_trial is False
        assert quote.base_price == Decimal("20.00")
        assert quote.total_amount == Decimal("22.00")
        assert quote.group_size == 3
        assert quote.lesson_quantity == 1

    def test_group_without_rate(self, rate_card) -> None:
        with pytest.raises(NoGroupRateError):
            calculate_booking_price(
                BookingSelection(lesson_type="group", group_size=5), "maria", [], rate_card
            )

    def test_student_never_gets_more_than_three_trials(self, rate_card) -> None:
        history = []
        trial_teachers = []
        for teacher_id in ["t1", "t2", "t3", "t4", "t5", "t1"]:
            quote = calculate_booking_price(
                BookingSelection(duration_minutes=60), teacher_id, history, rate_card, policy=POLICY
            )
            if quote.is_trial:
                trial_teachers.append(teacher_id)
                history.append(trial_with(teacher_id))

        assert trial_teachers == ["t1", "t2", "t3"]


class TestBookingSelection:
    def test_group_requires_size(self) -> None:
        with pytest.raises(ValidationError):
            BookingSelection(lesson_type="group")

    def test_rejects_unknown_lesson_type(self) -> None:
        with pytest.raises(ValidationError):
            BookingSelection(lesson_type="workshop")
