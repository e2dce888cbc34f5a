# backend/lessonbook/core/exceptions.py
"""
Domain-specific exceptions for the lesson booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=self._detail(),
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=self._detail())


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self._detail())


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=HTTP_422_UNPROCESSABLE, detail=self._detail())


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific pricing exceptions


class UnsupportedDurationError(ValidationException):
    """Raised when a teacher's rate card does not offer the requested duration."""

    def __init__(self, duration_minutes: int, offered: Optional[list[int]] = None):
        super().__init__(
            message=f"This teacher does not offer {duration_minutes}-minute lessons",
            code="UNSUPPORTED_DURATION",
            details={
                "duration_minutes": duration_minutes,
                "offered_durations": sorted(offered or []),
            },
        )


class InvalidQuantityError(ValidationException):
    """Raised when a package quantity falls outside the bookable range."""

    def __init__(self, lesson_quantity: int, minimum: int, maximum: int):
        super().__init__(
            message=f"Packages must contain between {minimum} and {maximum} lessons",
            code="INVALID_QUANTITY",
            details={
                "lesson_quantity": lesson_quantity,
                "minimum": minimum,
                "maximum": maximum,
            },
        )


class NoGroupRateError(ValidationException):
    """Raised when a teacher has not configured a rate for a group size."""

    def __init__(self, group_size: int, configured: Optional[list[int]] = None):
        super().__init__(
            message=f"No group rate configured for groups of {group_size}",
            code="NO_GROUP_RATE",
            details={
                "group_size": group_size,
                "configured_sizes": sorted(configured or []),
            },
        )


# Lifecycle exceptions


class InvalidTransitionError(BusinessRuleException):
    """Raised when a lesson cannot move from its current status."""

    def __init__(self, lesson_id: str, current_status: str, action: str):
        super().__init__(
            message=f"Cannot {action} a lesson that is {current_status}",
            code="INVALID_TRANSITION",
            details={
                "lesson_id": lesson_id,
                "current_status": current_status,
                "action": action,
            },
        )


class RescheduleLimitError(BusinessRuleException):
    """Raised when a teacher has used up the reschedules allowed for a lesson."""

    def __init__(self, lesson_id: str, max_reschedules: int):
        super().__init__(
            message=(
                f"Teachers may reschedule a lesson at most {max_reschedules} time(s); "
                "the student may cancel for a full refund instead"
            ),
            code="RESCHEDULE_LIMIT_REACHED",
            details={
                "lesson_id": lesson_id,
                "max_reschedules": max_reschedules,
                "student_refund_eligible": True,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
