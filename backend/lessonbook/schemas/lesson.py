"""Request/response schemas for the lesson lifecycle API."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .pricing import BookingSelection

PartyLiteral = Literal["student", "teacher"]


class LessonCreate(BaseModel):
    """Confirm a booking for the given selection and slot."""

    student_id: str = Field(..., min_length=1)
    teacher_id: str = Field(..., min_length=1)
    selection: BookingSelection = Field(default_factory=BookingSelection)
    scheduled_date: date
    scheduled_time: time


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    teacher_id: str
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int
    lesson_type: str
    lesson_quantity: int
    group_size: Optional[int] = None
    is_trial: bool
    base_price: Decimal
    commission_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    teacher_earnings: Decimal
    status: str
    completion_status: str
    attendance_status: str
    auto_complete_at: datetime
    reminder_sent: bool
    reschedule_count: int
    teacher_reschedule_count: int
    student_response_due_at: Optional[datetime] = None
    rescheduled_from_lesson_id: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class LessonCompleteRequest(BaseModel):
    confirmed_by: PartyLiteral


class LessonCancelRequest(BaseModel):
    cancelled_by: Literal["student", "teacher", "admin"]
    reason: Optional[str] = Field(default=None, max_length=1000)


class CancellationResponse(BaseModel):
    lesson: LessonResponse
    refund_amount: Decimal
    refund_percent: int = Field(ge=0, le=100)
    policy_basis: str


class LessonRescheduleRequest(BaseModel):
    new_date: date
    new_time: time
    requested_by: PartyLiteral


class RescheduleResponse(BaseModel):
    previous_lesson: LessonResponse
    lesson: LessonResponse


class AbsenceReportRequest(BaseModel):
    absent_party: PartyLiteral


class AbsenceReportResponse(BaseModel):
    lesson: LessonResponse
    outcome: str
    teacher_absence_count: Optional[int] = None
    teacher_suspension_flagged: bool = False


class LessonListResponse(BaseModel):
    items: List[LessonResponse]
    total: int


class BookingPoliciesOut(BaseModel):
    """Policy document shown on the booking pages."""

    pricing: Dict[str, object]
    cancellation: Dict[str, object]
    rescheduling: Dict[str, object]
    completion: Dict[str, object]
    absence: Dict[str, object]
