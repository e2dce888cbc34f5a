"""Booking quotes: trial check, base amount by lesson type, then the price split."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..core.policies import PricingPolicy, default_pricing_policy
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.pricing import (
    BookingSelection,
    GroupRate,
    PackageOffer,
    PriceQuote,
    RateCard,
    TeacherPricing,
    TrialAnalyticsOut,
    TrialEligibilityOut,
)
from .base import BaseService
from .package_pricing import quote_group_lesson, quote_package
from .pricing_rules import quote_single_lesson, round_money, split_price
from .trial_eligibility import TrialEligibilityTracker, TrialHistoryRecord


def calculate_booking_price(
    selection: BookingSelection,
    teacher_id: Optional[str],
    student_trial_history: Iterable[TrialHistoryRecord],
    rate_card: RateCard,
    package_offers: Optional[Iterable[PackageOffer]] = None,
    group_rates: Optional[Iterable[GroupRate]] = None,
    policy: Optional[PricingPolicy] = None,
) -> PriceQuote:
    """
    Price what the student selected.

    Without a teacher the all-zero "not ready" quote is returned. A single
    lesson with an eligible teacher is a trial at the platform trial price;
    packages and group seats are never trials.
    """
    pricing = policy or default_pricing_policy()
    if not teacher_id:
        return PriceQuote.not_ready()

    package = None
    is_trial = False
    if selection.lesson_type == "package":
        package = quote_package(
            rate_card,
            selection.duration_minutes,
            selection.lesson_quantity,
            package_offers,
            policy=pricing,
        )
        base_price = package.final_price
    elif selection.lesson_type == "group":
        base_price = quote_group_lesson(group_rates, int(selection.group_size or 0))
    else:
        # Trials are still limited to durations the teacher offers
        base_price = quote_single_lesson(rate_card, selection.duration_minutes)
        tracker = TrialEligibilityTracker(pricing)
        if tracker.is_eligible_for_trial(student_trial_history, teacher_id):
            is_trial = True
            base_price = round_money(pricing.trial_price)

    breakdown = split_price(base_price, pricing)
    return PriceQuote(
        base_price=breakdown.base_price,
        commission_amount=breakdown.commission_amount,
        tax_amount=breakdown.tax_amount,
        total_amount=breakdown.total_amount,
        teacher_earnings=breakdown.teacher_earnings,
        is_trial=is_trial,
        lesson_type=selection.lesson_type,
        duration_minutes=selection.duration_minutes,
        lesson_quantity=selection.lesson_quantity if selection.lesson_type == "package" else 1,
        group_size=selection.group_size if selection.lesson_type == "group" else None,
        package=package,
    )


class BookingPricingService(BaseService):
    """Loads pricing inputs for a student/teacher pair and quotes them."""

    def __init__(self, db: Session, policy: Optional[PricingPolicy] = None):
        super().__init__(db)
        self.policy = policy or default_pricing_policy()
        self.tracker = TrialEligibilityTracker(self.policy)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    @BaseService.measure_operation("pricing.quote")
    def quote(
        self, student_id: str, teacher_id: Optional[str], selection: BookingSelection
    ) -> PriceQuote:
        if not teacher_id:
            return PriceQuote.not_ready()

        self.teacher_repository.get_teacher(teacher_id)
        quote = calculate_booking_price(
            selection,
            teacher_id,
            self.lesson_repository.get_student_history(student_id),
            self.teacher_repository.get_teacher_rate_card(teacher_id),
            self.teacher_repository.get_teacher_package_offers(teacher_id),
            self.teacher_repository.get_teacher_group_rates(teacher_id),
            policy=self.policy,
        )
        prometheus_metrics.record_price_quote(quote.lesson_type, quote.is_trial)
        self.logger.debug(
            f"Quoted {quote.lesson_type} lesson for student {student_id} with teacher "
            f"{teacher_id}: total={quote.total_amount} trial={quote.is_trial}"
        )
        return quote

    @BaseService.measure_operation("pricing.trial_eligibility")
    def trial_eligibility(self, student_id: str, teacher_id: str) -> TrialEligibilityOut:
        history = self.lesson_repository.get_student_history(student_id)
        usage = self.tracker.summarize(history)
        return TrialEligibilityOut(
            student_id=student_id,
            teacher_id=teacher_id,
            eligible=self.tracker.is_eligible_for_trial(history, teacher_id),
            trial_price=round_money(self.policy.trial_price),
            teachers_trialed=usage.teachers_trialed,
            trials_remaining=usage.trials_remaining,
        )

    @BaseService.measure_operation("pricing.trial_analytics")
    def trial_analytics(self) -> TrialAnalyticsOut:
        return self.tracker.build_analytics(self.lesson_repository.get_lessons())

    def get_teacher_pricing(self, teacher_id: str) -> TeacherPricing:
        return self.teacher_repository.get_teacher_pricing(teacher_id)

    @BaseService.measure_operation("pricing.update_teacher_pricing")
    def update_teacher_pricing(self, teacher_id: str, pricing: TeacherPricing) -> TeacherPricing:
        with self.transaction():
            self.teacher_repository.replace_pricing(teacher_id, pricing)
        self.logger.info(
            f"Updated pricing for teacher {teacher_id}: durations={pricing.rate_card.durations}"
        )
        return self.teacher_repository.get_teacher_pricing(teacher_id)


__all__ = ["BookingPricingService", "calculate_booking_price"]
