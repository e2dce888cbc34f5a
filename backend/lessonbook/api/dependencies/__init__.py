"""FastAPI dependencies."""

from .database import get_db
from .services import get_booking_pricing_service, get_lesson_lifecycle_service

__all__ = ["get_booking_pricing_service", "get_db", "get_lesson_lifecycle_service"]
