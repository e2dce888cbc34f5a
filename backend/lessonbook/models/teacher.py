# backend/lessonbook/models/teacher.py
"""
Teacher pricing models.

A teacher owns a rate card (one row per offered duration), optional package
offers that override the platform discount ladder, and optional per-seat
group rates. The profile also tracks teacher absences, which flag the account
for suspension once the configured threshold is reached.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TeacherProfile(Base):
    __tablename__ = "teacher_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    display_name = Column(String(255), nullable=False)
    absence_count = Column(Integer, nullable=False, default=0)
    suspension_flagged_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rates = relationship(
        "TeacherRate",
        back_populates="teacher",
        cascade="all, delete-orphan",
        order_by="TeacherRate.duration_minutes",
    )
    package_offers = relationship(
        "TeacherPackageOffer",
        back_populates="teacher",
        cascade="all, delete-orphan",
        order_by="TeacherPackageOffer.lesson_count",
    )
    group_rates = relationship(
        "TeacherGroupRate",
        back_populates="teacher",
        cascade="all, delete-orphan",
        order_by="TeacherGroupRate.group_size",
    )
    lessons = relationship("Lesson", back_populates="teacher")

    @property
    def is_suspension_flagged(self) -> bool:
        return self.suspension_flagged_at is not None

    def __repr__(self) -> str:
        return f"<TeacherProfile {self.id}: {self.display_name}>"


class TeacherRate(Base):
    """One rate card entry: price for a lesson of a given length."""

    __tablename__ = "teacher_rates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    teacher = relationship("TeacherProfile", back_populates="rates")

    __table_args__ = (
        UniqueConstraint("teacher_id", "duration_minutes", name="uq_teacher_rate_duration"),
        CheckConstraint("duration_minutes > 0", name="check_rate_duration_positive"),
        CheckConstraint("price > 0", name="check_rate_price_positive"),
    )


class TeacherPackageOffer(Base):
    __tablename__ = "teacher_package_offers"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    lesson_count = Column(Integer, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False)

    teacher = relationship("TeacherProfile", back_populates="package_offers")

    __table_args__ = (
        UniqueConstraint("teacher_id", "lesson_count", name="uq_teacher_package_count"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent < 100",
            name="check_package_discount_range",
        ),
    )


class TeacherGroupRate(Base):
    __tablename__ = "teacher_group_rates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    group_size = Column(Integer, nullable=False)
    price_per_person = Column(Numeric(10, 2), nullable=False)

    teacher = relationship("TeacherProfile", back_populates="group_rates")

    __table_args__ = (
        UniqueConstraint("teacher_id", "group_size", name="uq_teacher_group_size"),
        CheckConstraint("group_size > 1", name="check_group_size_min"),
        CheckConstraint("price_per_person > 0", name="check_group_price_positive"),
    )
