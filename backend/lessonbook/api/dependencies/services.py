# backend/lessonbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets services bound to its own database session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_price_calculator import BookingPricingService
from ...services.lesson_lifecycle_service import LessonLifecycleService
from .database import get_db


def get_booking_pricing_service(db: Session = Depends(get_db)) -> BookingPricingService:
    return BookingPricingService(db)


def get_lesson_lifecycle_service(db: Session = Depends(get_db)) -> LessonLifecycleService:
    return LessonLifecycleService(db)
