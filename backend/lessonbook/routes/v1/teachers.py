"""V1 teacher pricing endpoints (rate card, package offers, group rates)."""

import logging

from fastapi import APIRouter, Depends, Path

from ...api.dependencies.services import get_booking_pricing_service
from ...core.exceptions import DomainException
from ...schemas.pricing import TeacherPricing
from ...services.booking_price_calculator import BookingPricingService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/teachers
router = APIRouter(tags=["teachers"])


@router.get("/{teacher_id}/pricing", response_model=TeacherPricing)
def get_teacher_pricing(
    teacher_id: str = Path(..., min_length=1),
    pricing_service: BookingPricingService = Depends(get_booking_pricing_service),
) -> TeacherPricing:
    try:
        return pricing_service.get_teacher_pricing(teacher_id)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.put("/{teacher_id}/pricing", response_model=TeacherPricing)
def update_teacher_pricing(
    payload: TeacherPricing,
    teacher_id: str = Path(..., min_length=1),
    pricing_service: BookingPricingService = Depends(get_booking_pricing_service),
) -> TeacherPricing:
    """Replace the teacher's whole pricing configuration."""
    try:
        return pricing_service.update_teacher_pricing(teacher_id, payload)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
