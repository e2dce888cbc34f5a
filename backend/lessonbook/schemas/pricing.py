"""Pydantic schemas for teacher pricing inputs and booking quotes."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

LessonTypeLiteral = Literal["single", "package", "group"]

ZERO = Decimal("0.00")


class RateCard(BaseModel):
    """Teacher rate card: lesson length in minutes -> unit price."""

    model_config = ConfigDict(frozen=True)

    prices: Dict[int, Decimal] = Field(default_factory=dict)

    @field_validator("prices")
    @classmethod
    def validate_prices(cls, value: Dict[int, Decimal]) -> Dict[int, Decimal]:
        for duration, price in value.items():
            if duration <= 0:
                raise ValueError(f"Lesson duration must be positive (got {duration})")
            if price <= 0:
                raise ValueError(f"Price for {duration}-minute lessons must be positive")
        return value

    @classmethod
    def from_mapping(cls, prices: Dict[int, object]) -> "RateCard":
        return cls(prices={int(k): Decimal(str(v)) for k, v in prices.items()})

    @property
    def durations(self) -> List[int]:
        return sorted(self.prices)

    def price_for(self, duration_minutes: int) -> Optional[Decimal]:
        return self.prices.get(duration_minutes)


class PackageOffer(BaseModel):
    """Teacher-configured discount for a specific package size."""

    model_config = ConfigDict(frozen=True)

    lesson_count: int = Field(..., ge=5, le=25, description="Lessons in the package")
    discount_percent: Decimal = Field(
        ...,
        ge=0,
        lt=100,
        description="Discount in percent; 100 would make the package free and is rejected",
    )


class GroupRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_size: int = Field(..., ge=2)
    price_per_person: Decimal = Field(..., gt=0)


class TeacherPricing(BaseModel):
    """Full pricing configuration for one teacher."""

    rate_card: RateCard
    package_offers: List[PackageOffer] = Field(default_factory=list)
    group_rates: List[GroupRate] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_keys(self) -> "TeacherPricing":
        counts = [offer.lesson_count for offer in self.package_offers]
        if len(counts) != len(set(counts)):
            raise ValueError("Package offers must have distinct lesson counts")
        sizes = [rate.group_size for rate in self.group_rates]
        if len(sizes) != len(set(sizes)):
            raise ValueError("Group rates must have distinct group sizes")
        return self


class BookingSelection(BaseModel):
    """What the student picked in the booking form."""

    lesson_type: LessonTypeLiteral = "single"
    duration_minutes: PositiveInt = 60
    lesson_quantity: PositiveInt = 1
    group_size: Optional[int] = Field(default=None, ge=2)

    @model_validator(mode="after")
    def validate_group_size(self) -> "BookingSelection":
        if self.lesson_type == "group" and self.group_size is None:
            raise ValueError("group_size is required for group lessons")
        return self


class PackageQuote(BaseModel):
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    price_per_lesson: Decimal
    discount_percent: Decimal = Field(description="Applied discount in percent")
    discount_source: Literal["teacher_offer", "platform_ladder"]


class PriceQuote(BaseModel):
    """Priced quote shown to the student before payment."""

    base_price: Decimal
    commission_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    teacher_earnings: Decimal
    is_trial: bool = False
    lesson_type: LessonTypeLiteral = "single"
    duration_minutes: int = 0
    lesson_quantity: int = 1
    group_size: Optional[int] = None
    package: Optional[PackageQuote] = None

    @classmethod
    def not_ready(cls) -> "PriceQuote":
        """All-zero sentinel returned while no teacher is selected."""
        return cls(
            base_price=ZERO,
            commission_amount=ZERO,
            tax_amount=ZERO,
            total_amount=ZERO,
            teacher_earnings=ZERO,
            is_trial=False,
        )

    @property
    def is_ready(self) -> bool:
        return self.base_price > 0


class QuoteRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    teacher_id: Optional[str] = None
    selection: BookingSelection = Field(default_factory=BookingSelection)


class TrialEligibilityOut(BaseModel):
    student_id: str
    teacher_id: str
    eligible: bool
    trial_price: Decimal
    teachers_trialed: List[str]
    trials_remaining: int


class TeacherTrialStats(BaseModel):
    teacher_id: str
    trial_count: int
    conversion_count: int


class TrialAnalyticsOut(BaseModel):
    total_trial_lessons: int
    unique_trial_students: int
    converted_students: int
    conversion_rate: float = Field(ge=0, le=1)
    total_trial_revenue: Decimal
    trials_by_teacher: List[TeacherTrialStats]
