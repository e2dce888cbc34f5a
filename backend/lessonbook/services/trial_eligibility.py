"""Trial lesson eligibility derived from a student's lesson history.

Nothing stores "trials used": eligibility is recomputed from past lessons on
every quote. Which past lessons count as trials depends on the configured
lookup basis: ``price`` recognises single lessons booked at the trial price,
``flag`` trusts the ``is_trial`` flag stored on the lesson at booking time.
Cancelled lessons never consume a trial, and a rescheduled lesson hands its
trial over to the replacement booking.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Set

from ..core.policies import PricingPolicy, default_pricing_policy
from ..schemas.pricing import TeacherTrialStats, TrialAnalyticsOut
from .pricing_rules import round_money

INACTIVE_STATUSES = frozenset({"cancelled", "rescheduled"})


class TrialHistoryRecord(Protocol):
    """Fields of a past lesson needed to decide whether it was a trial."""

    student_id: str
    teacher_id: str
    base_price: Decimal
    lesson_type: str
    is_trial: bool
    status: str


@dataclass(frozen=True)
class TrialUsage:
    teachers_trialed: List[str]
    trials_used: int
    trials_remaining: int


class TrialEligibilityTracker:
    """Read-only trial rules for one pricing policy."""

    def __init__(self, policy: Optional[PricingPolicy] = None) -> None:
        self.policy = policy or default_pricing_policy()

    def is_trial_lesson(self, record: TrialHistoryRecord) -> bool:
        if str(record.status) in INACTIVE_STATUSES:
            return False
        if self.policy.trial_lookup_basis == "flag":
            return bool(record.is_trial)
        if str(record.lesson_type) != "single":
            return False
        return round_money(record.base_price) == round_money(self.policy.trial_price)

    def teachers_already_trialed(self, history: Iterable[TrialHistoryRecord]) -> List[str]:
        """Distinct teacher ids the student has had a trial with, in history order."""
        seen: List[str] = []
        for record in history:
            if self.is_trial_lesson(record) and record.teacher_id not in seen:
                seen.append(record.teacher_id)
        return seen

    def count_distinct_teachers_with_trial(self, history: Iterable[TrialHistoryRecord]) -> int:
        return len(self.teachers_already_trialed(history))

    def is_eligible_for_trial(
        self, student_trial_history: Iterable[TrialHistoryRecord], teacher_id: str
    ) -> bool:
        if not self.policy.trial_enabled:
            return False
        trialed = self.teachers_already_trialed(student_trial_history)
        return len(trialed) < self.policy.max_trial_teachers and teacher_id not in trialed

    def summarize(self, history: Iterable[TrialHistoryRecord]) -> TrialUsage:
        trialed = self.teachers_already_trialed(history)
        return TrialUsage(
            teachers_trialed=trialed,
            trials_used=len(trialed),
            trials_remaining=max(0, self.policy.max_trial_teachers - len(trialed)),
        )

    def build_analytics(self, lessons: Iterable[TrialHistoryRecord]) -> TrialAnalyticsOut:
        """Platform-wide trial usage and trial-to-regular conversion."""
        trial_pairs: Dict[str, Set[str]] = defaultdict(set)
        regular_pairs: Set[tuple[str, str]] = set()
        trial_count_by_teacher: Dict[str, int] = defaultdict(int)
        total_trials = 0
        revenue = Decimal("0")

        for lesson in lessons:
            if self.is_trial_lesson(lesson):
                total_trials += 1
                revenue += round_money(lesson.base_price)
                trial_pairs[lesson.teacher_id].add(lesson.student_id)
                trial_count_by_teacher[lesson.teacher_id] += 1
            elif str(lesson.status) not in INACTIVE_STATUSES:
                regular_pairs.add((lesson.student_id, lesson.teacher_id))

        trial_students: Set[str] = set()
        converted_students: Set[str] = set()
        per_teacher: List[TeacherTrialStats] = []
        for teacher_id in sorted(trial_pairs):
            students = trial_pairs[teacher_id]
            trial_students |= students
            converted = {s for s in students if (s, teacher_id) in regular_pairs}
            converted_students |= converted
            per_teacher.append(
                TeacherTrialStats(
                    teacher_id=teacher_id,
                    trial_count=trial_count_by_teacher[teacher_id],
                    conversion_count=len(converted),
                )
            )

        unique_students = len(trial_students)
        return TrialAnalyticsOut(
            total_trial_lessons=total_trials,
            unique_trial_students=unique_students,
            converted_students=len(converted_students),
            conversion_rate=(len(converted_students) / unique_students) if unique_students else 0.0,
            total_trial_revenue=round_money(revenue),
            trials_by_teacher=per_teacher,
        )


def is_eligible_for_trial(
    student_trial_history: Iterable[TrialHistoryRecord],
    teacher_id: str,
    policy: Optional[PricingPolicy] = None,
) -> bool:
    return TrialEligibilityTracker(policy).is_eligible_for_trial(student_trial_history, teacher_id)


__all__ = [
    "TrialEligibilityTracker",
    "TrialHistoryRecord",
    "TrialUsage",
    "is_eligible_for_trial",
]
