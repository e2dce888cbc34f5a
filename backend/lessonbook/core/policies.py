"""Frozen policy snapshots derived from settings.

Pure pricing functions and the lifecycle service take these instead of reading
``settings`` directly, so a single quote or transition always sees one
consistent set of constants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from .config import Settings, settings


@dataclass(frozen=True)
class PricingPolicy:
    commission_rate: Decimal = Decimal("0.20")
    tax_rate: Decimal = Decimal("0.10")
    trial_price: Decimal = Decimal("5")
    trial_enabled: bool = True
    max_trial_teachers: int = 3
    trial_lookup_basis: str = "price"
    package_discount_ladder: Dict[int, Decimal] = field(
        default_factory=lambda: {5: Decimal("0.05"), 10: Decimal("0.10"), 20: Decimal("0.15")}
    )
    package_min_lessons: int = 5
    package_max_lessons: int = 25

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "PricingPolicy":
        cfg = source or settings
        return cls(
            commission_rate=Decimal(str(cfg.commission_rate)),
            tax_rate=Decimal(str(cfg.tax_rate)),
            trial_price=Decimal(str(cfg.trial_price)),
            trial_enabled=cfg.trial_enabled,
            max_trial_teachers=cfg.max_trial_teachers,
            trial_lookup_basis=cfg.trial_lookup_basis,
            package_discount_ladder=dict(cfg.package_discount_ladder),
            package_min_lessons=cfg.package_min_lessons,
            package_max_lessons=cfg.package_max_lessons,
        )

    def ladder_discount(self, lesson_quantity: int) -> Decimal:
        """Return the platform default discount fraction for a package size."""
        discount = Decimal("0")
        for threshold in sorted(self.package_discount_ladder):
            if lesson_quantity >= threshold:
                discount = Decimal(str(self.package_discount_ladder[threshold]))
        return discount


@dataclass(frozen=True)
class LifecyclePolicy:
    auto_complete_delay_hours: int = 48
    reminder_lead_minutes: int = 30
    free_cancellation_window_hours: int = 12
    max_teacher_reschedules: int = 1
    reschedule_window_days: int = 7
    student_reschedule_response_hours: int = 24
    teacher_absence_suspension_threshold: int = 3

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "LifecyclePolicy":
        cfg = source or settings
        return cls(
            auto_complete_delay_hours=cfg.auto_complete_delay_hours,
            reminder_lead_minutes=cfg.reminder_lead_minutes,
            free_cancellation_window_hours=cfg.free_cancellation_window_hours,
            max_teacher_reschedules=cfg.max_teacher_reschedules,
            reschedule_window_days=cfg.reschedule_window_days,
            student_reschedule_response_hours=cfg.student_reschedule_response_hours,
            teacher_absence_suspension_threshold=cfg.teacher_absence_suspension_threshold,
        )


def default_pricing_policy() -> PricingPolicy:
    return PricingPolicy.from_settings()


def default_lifecycle_policy() -> LifecyclePolicy:
    return LifecyclePolicy.from_settings()


__all__ = [
    "LifecyclePolicy",
    "PricingPolicy",
    "default_lifecycle_policy",
    "default_pricing_policy",
]
