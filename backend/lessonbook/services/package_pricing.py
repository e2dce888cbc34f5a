"""Multi-lesson package and per-seat group pricing."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from ..core.exceptions import InvalidQuantityError, NoGroupRateError
from ..core.policies import PricingPolicy, default_pricing_policy
from ..schemas.pricing import GroupRate, PackageOffer, PackageQuote, RateCard
from .pricing_rules import quote_single_lesson, round_money

HUNDRED = Decimal("100")


def _find_offer(
    package_offers: Optional[Iterable[PackageOffer]], lesson_quantity: int
) -> Optional[PackageOffer]:
    for offer in package_offers or ():
        if offer.lesson_count == lesson_quantity:
            return offer
    return None


def quote_package(
    rate_card: RateCard,
    duration_minutes: int,
    lesson_quantity: int,
    package_offers: Optional[Iterable[PackageOffer]] = None,
    policy: Optional[PricingPolicy] = None,
) -> PackageQuote:
    """
    Price a bundle of ``lesson_quantity`` lessons of the same length.

    A teacher offer for exactly this quantity takes precedence over the
    platform discount ladder.
    """
    pricing = policy or default_pricing_policy()
    if not pricing.package_min_lessons <= lesson_quantity <= pricing.package_max_lessons:
        raise InvalidQuantityError(
            lesson_quantity, pricing.package_min_lessons, pricing.package_max_lessons
        )

    unit_price = quote_single_lesson(rate_card, duration_minutes)
    original_price = round_money(unit_price * lesson_quantity)

    offer = _find_offer(package_offers, lesson_quantity)
    if offer is not None:
        discount_percent = Decimal(str(offer.discount_percent))
        source = "teacher_offer"
    else:
        discount_percent = pricing.ladder_discount(lesson_quantity) * HUNDRED
        source = "platform_ladder"

    discount_amount = round_money(original_price * discount_percent / HUNDRED)
    final_price = original_price - discount_amount

    return PackageQuote(
        original_price=original_price,
        discount_amount=discount_amount,
        final_price=final_price,
        price_per_lesson=round_money(final_price / lesson_quantity),
        discount_percent=round_money(discount_percent),
        discount_source=source,
    )


def quote_group_lesson(group_rates: Optional[Iterable[GroupRate]], group_size: int) -> Decimal:
    """Return the per-person price for an exact group size."""
    rates = list(group_rates or ())
    for rate in rates:
        if rate.group_size == group_size:
            return round_money(rate.price_per_person)
    raise NoGroupRateError(group_size, [rate.group_size for rate in rates])


__all__ = ["quote_group_lesson", "quote_package"]
