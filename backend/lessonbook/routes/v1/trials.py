"""V1 trial lesson endpoints: per-student eligibility and platform analytics."""

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.services import get_booking_pricing_service
from ...schemas.pricing import TrialAnalyticsOut, TrialEligibilityOut
from ...services.booking_price_calculator import BookingPricingService

# V1 router - mounted at /api/v1/trials
router = APIRouter(tags=["trials"])


@router.get("/eligibility", response_model=TrialEligibilityOut)
def get_trial_eligibility(
    student_id: str = Query(..., min_length=1),
    teacher_id: str = Query(..., min_length=1),
    pricing_service: BookingPricingService = Depends(get_booking_pricing_service),
) -> TrialEligibilityOut:
    return pricing_service.trial_eligibility(student_id, teacher_id)


@router.get("/analytics", response_model=TrialAnalyticsOut)
def get_trial_analytics(
    pricing_service: BookingPricingService = Depends(get_booking_pricing_service),
) -> TrialAnalyticsOut:
    """Trial usage and trial-to-regular conversion across all teachers."""
    return pricing_service.trial_analytics()
