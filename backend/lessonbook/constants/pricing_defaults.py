"""Default pricing and lesson lifecycle configuration values."""

from __future__ import annotations

from typing import Any, Dict

PRICING_DEFAULTS: Dict[str, Any] = {
    "commission_rate": 0.20,
    "tax_rate": 0.10,
    "trial_price": 5,
    "trial_enabled": True,
    "max_trial_teachers": 3,
    "trial_lookup_basis": "price",
    "package_discount_ladder": {5: 0.05, 10: 0.10, 20: 0.15},
    "package_min_lessons": 5,
    "package_max_lessons": 25,
}

LIFECYCLE_DEFAULTS: Dict[str, Any] = {
    "auto_complete_delay_hours": 48,
    "reminder_lead_minutes": 30,
    "free_cancellation_window_hours": 12,
    "max_teacher_reschedules": 1,
    "reschedule_window_days": 7,
    "student_reschedule_response_hours": 24,
    "teacher_absence_suspension_threshold": 3,
    "lesson_timer_scan_seconds": 60,
}
