"""V1 pricing quote endpoint for the booking form."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ...api.dependencies.services import get_booking_pricing_service
from ...core.exceptions import DomainException
from ...schemas.pricing import PriceQuote, QuoteRequest
from ...services.booking_price_calculator import BookingPricingService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/pricing
router = APIRouter(tags=["pricing"])


@router.post("/quote", response_model=PriceQuote)
def quote_booking(
    payload: QuoteRequest,
    pricing_service: BookingPricingService = Depends(get_booking_pricing_service),
) -> PriceQuote:
    """
    Price the current selection.

    Called on every change of teacher, duration or quantity; without a teacher
    the all-zero quote is returned.
    """
    try:
        return pricing_service.quote(payload.student_id, payload.teacher_id, payload.selection)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
