"""
Lessons routes - API v1

Lesson lifecycle endpoints under /api/v1/lessons.
All business logic delegated to LessonLifecycleService.

Endpoints:
    POST /                        → Confirm a booking (price + persist + timers)
    GET  /                        → List lessons (student/teacher/status/upcoming filters)
    GET  /policies                → Booking, cancellation and reschedule policy document
    GET  /{lesson_id}             → Lesson detail
    POST /{lesson_id}/complete    → Manual completion by either party
    POST /{lesson_id}/cancel      → Cancel with refund evaluation
    POST /{lesson_id}/reschedule  → Move to a new slot
    POST /{lesson_id}/absence     → Report a student or teacher absence
"""

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ...api.dependencies.services import get_lesson_lifecycle_service
from ...core.exceptions import DomainException
from ...models.lesson import LessonStatus
from ...repositories.lesson_repository import LessonFilter
from ...schemas.lesson import (
    AbsenceReportRequest,
    AbsenceReportResponse,
    BookingPoliciesOut,
    CancellationResponse,
    LessonCancelRequest,
    LessonCompleteRequest,
    LessonCreate,
    LessonListResponse,
    LessonRescheduleRequest,
    LessonResponse,
    RescheduleResponse,
)
from ...services.lesson_lifecycle_service import LessonLifecycleService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["lessons-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
def confirm_booking(
    payload: LessonCreate,
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> LessonResponse:
    """Price the selection and create the lesson with its reminder and auto-complete timers."""
    try:
        lesson = service.confirm_booking(payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return LessonResponse.model_validate(lesson)


@router.get("", response_model=LessonListResponse)
def list_lessons(
    student_id: Optional[str] = Query(None),
    teacher_id: Optional[str] = Query(None),
    status_filter: Optional[LessonStatus] = Query(None, alias="status"),
    upcoming: bool = Query(False, description="Only scheduled lessons that have not started"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> LessonListResponse:
    lessons = service.list_lessons(
        LessonFilter(
            student_id=student_id,
            teacher_id=teacher_id,
            status=status_filter.value if status_filter else None,
            upcoming=upcoming,
            skip=skip,
            limit=limit,
        )
    )
    items = [LessonResponse.model_validate(lesson) for lesson in lessons]
    return LessonListResponse(items=items, total=len(items))


@router.get("/policies", response_model=BookingPoliciesOut)
def get_booking_policies(
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> BookingPoliciesOut:
    return BookingPoliciesOut(**service.booking_policies())


@router.get("/{lesson_id}", response_model=LessonResponse)
def get_lesson(
    lesson_id: str = Path(..., description="Lesson ULID", pattern=ULID_PATH_PATTERN),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> LessonResponse:
    try:
        lesson = service.get_lesson(lesson_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return LessonResponse.model_validate(lesson)


@router.post("/{lesson_id}/complete", response_model=LessonResponse)
def complete_lesson(
    payload: LessonCompleteRequest,
    lesson_id: str = Path(..., description="Lesson ULID", pattern=ULID_PATH_PATTERN),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> LessonResponse:
    """Mark a lesson completed; repeating the call is a no-op."""
    try:
        lesson = service.complete_lesson(lesson_id, payload.confirmed_by)
    except DomainException as exc:
        handle_domain_exception(exc)
    return LessonResponse.model_validate(lesson)


@router.post("/{lesson_id}/cancel", response_model=CancellationResponse)
def cancel_lesson(
    payload: LessonCancelRequest,
    lesson_id: str = Path(..., description="Lesson ULID", pattern=ULID_PATH_PATTERN),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> CancellationResponse:
    try:
        outcome = service.cancel_lesson(lesson_id, payload.cancelled_by, reason=payload.reason)
    except DomainException as exc:
        handle_domain_exception(exc)
    return CancellationResponse(
        lesson=LessonResponse.model_validate(outcome.lesson),
        refund_amount=outcome.refund.refund_amount,
        refund_percent=outcome.refund.refund_percent,
        policy_basis=outcome.refund.policy_basis,
    )


@router.post("/{lesson_id}/reschedule", response_model=RescheduleResponse)
def reschedule_lesson(
    payload: LessonRescheduleRequest,
    lesson_id: str = Path(..., description="Lesson ULID", pattern=ULID_PATH_PATTERN),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> RescheduleResponse:
    try:
        outcome = service.reschedule_lesson(
            lesson_id, payload.new_date, payload.new_time, payload.requested_by
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return RescheduleResponse(
        previous_lesson=LessonResponse.model_validate(outcome.previous_lesson),
        lesson=LessonResponse.model_validate(outcome.lesson),
    )


@router.post("/{lesson_id}/absence", response_model=AbsenceReportResponse)
def report_absence(
    payload: AbsenceReportRequest,
    lesson_id: str = Path(..., description="Lesson ULID", pattern=ULID_PATH_PATTERN),
    service: LessonLifecycleService = Depends(get_lesson_lifecycle_service),
) -> AbsenceReportResponse:
    try:
        outcome = service.report_absence(lesson_id, payload.absent_party)
    except DomainException as exc:
        handle_domain_exception(exc)
    return AbsenceReportResponse(
        lesson=LessonResponse.model_validate(outcome.lesson),
        outcome=outcome.outcome,
        teacher_absence_count=outcome.teacher_absence_count,
        teacher_suspension_flagged=outcome.teacher_suspension_flagged,
    )
