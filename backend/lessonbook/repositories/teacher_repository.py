# backend/lessonbook/repositories/teacher_repository.py
"""
Teacher Repository for the lesson booking engine

Reads a teacher's rate card, package offers and group rates as validated
pricing value objects, replaces them as a unit, and keeps the absence counter
used for suspension flagging.
"""

from datetime import datetime
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import NotFoundException, RepositoryException
from ..models.teacher import TeacherGroupRate, TeacherPackageOffer, TeacherProfile, TeacherRate
from ..schemas.pricing import GroupRate, PackageOffer, RateCard, TeacherPricing
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TeacherRepository(BaseRepository[TeacherProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TeacherProfile)

    def get_teacher(self, teacher_id: str) -> TeacherProfile:
        teacher = self.get_by_id(teacher_id)
        if teacher is None:
            raise NotFoundException(
                f"Teacher with id {teacher_id} not found", code="TEACHER_NOT_FOUND"
            )
        return teacher

    def get_teacher_rate_card(self, teacher_id: str) -> RateCard:
        rows = self._execute_query(
            self.db.query(TeacherRate).filter(TeacherRate.teacher_id == teacher_id)
        )
        return RateCard.from_mapping({row.duration_minutes: row.price for row in rows})

    def get_teacher_package_offers(self, teacher_id: str) -> List[PackageOffer]:
        rows = self._execute_query(
            self.db.query(TeacherPackageOffer)
            .filter(TeacherPackageOffer.teacher_id == teacher_id)
            .order_by(TeacherPackageOffer.lesson_count)
        )
        return [
            PackageOffer(lesson_count=row.lesson_count, discount_percent=row.discount_percent)
            for row in rows
        ]

    def get_teacher_group_rates(self, teacher_id: str) -> List[GroupRate]:
        rows = self._execute_query(
            self.db.query(TeacherGroupRate)
            .filter(TeacherGroupRate.teacher_id == teacher_id)
            .order_by(TeacherGroupRate.group_size)
        )
        return [
            GroupRate(group_size=row.group_size, price_per_person=row.price_per_person)
            for row in rows
        ]

    def get_teacher_pricing(self, teacher_id: str) -> TeacherPricing:
        self.get_teacher(teacher_id)
        return TeacherPricing(
            rate_card=self.get_teacher_rate_card(teacher_id),
            package_offers=self.get_teacher_package_offers(teacher_id),
            group_rates=self.get_teacher_group_rates(teacher_id),
        )

    def replace_pricing(self, teacher_id: str, pricing: TeacherPricing) -> TeacherProfile:
        """Swap the teacher's whole pricing configuration. Does not commit."""
        teacher = self.get_teacher(teacher_id)
        try:
            # Old rows go first so replacements never trip the unique constraints
            teacher.rates.clear()
            teacher.package_offers.clear()
            teacher.group_rates.clear()
            self.db.flush()

            teacher.rates = [
                TeacherRate(duration_minutes=duration, price=price)
                for duration, price in sorted(pricing.rate_card.prices.items())
            ]
            teacher.package_offers = [
                TeacherPackageOffer(
                    lesson_count=offer.lesson_count, discount_percent=offer.discount_percent
                )
                for offer in pricing.package_offers
            ]
            teacher.group_rates = [
                TeacherGroupRate(group_size=rate.group_size, price_per_person=rate.price_per_person)
                for rate in pricing.group_rates
            ]
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing pricing for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to replace teacher pricing: {str(e)}")
        return teacher

    def increment_absence(self, teacher_id: str) -> int:
        """Atomically bump the absence counter and return the new value."""
        try:
            updated = (
                self.db.query(TeacherProfile)
                .filter(TeacherProfile.id == teacher_id)
                .update(
                    {"absence_count": TeacherProfile.absence_count + 1},
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording absence for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to record teacher absence: {str(e)}")
        if not updated:
            raise NotFoundException(
                f"Teacher with id {teacher_id} not found", code="TEACHER_NOT_FOUND"
            )
        count = self._execute_scalar(
            self.db.query(TeacherProfile.absence_count).filter(TeacherProfile.id == teacher_id)
        )
        return int(count)

    def flag_for_suspension(self, teacher_id: str, flagged_at: datetime) -> bool:
        """Set the suspension flag once; False if the teacher was already flagged."""
        try:
            updated = (
                self.db.query(TeacherProfile)
                .filter(
                    TeacherProfile.id == teacher_id,
                    TeacherProfile.suspension_flagged_at.is_(None),
                )
                .update({"suspension_flagged_at": flagged_at}, synchronize_session="fetch")
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error flagging teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to flag teacher: {str(e)}")
        return bool(updated)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(TeacherProfile.rates),
            selectinload(TeacherProfile.package_offers),
            selectinload(TeacherProfile.group_rates),
        )
