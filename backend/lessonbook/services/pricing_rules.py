"""Single-lesson pricing and the commission/tax split.

Pure functions over a teacher's rate card. The platform commission comes out
of the teacher's share; tax is charged to the student on the base price only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from ..core.exceptions import UnsupportedDurationError
from ..core.policies import PricingPolicy, default_pricing_policy
from ..schemas.pricing import RateCard

CENT = Decimal("0.01")

Money = Union[Decimal, int, str]


def round_money(value: Money) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: Decimal
    commission_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    teacher_earnings: Decimal


def quote_single_lesson(rate_card: RateCard, duration_minutes: int) -> Decimal:
    """Return the teacher's unit price for a lesson of ``duration_minutes``."""
    price = rate_card.price_for(duration_minutes)
    if price is None:
        raise UnsupportedDurationError(duration_minutes, rate_card.durations)
    return round_money(price)


def split_price(base_price: Money, policy: Optional[PricingPolicy] = None) -> PriceBreakdown:
    """
    Derive commission, tax, student total and teacher earnings from a base price.

    Commission and tax are rounded to cents independently; total and earnings
    are exact sums/differences so ``total - tax == base`` and
    ``commission + earnings == base`` always hold.
    """
    pricing = policy or default_pricing_policy()
    base = round_money(base_price)
    commission = round_money(base * pricing.commission_rate)
    tax = round_money(base * pricing.tax_rate)
    return PriceBreakdown(
        base_price=base,
        commission_amount=commission,
        tax_amount=tax,
        total_amount=base + tax,
        teacher_earnings=base - commission,
    )


__all__ = ["CENT", "PriceBreakdown", "quote_single_lesson", "round_money", "split_price"]
