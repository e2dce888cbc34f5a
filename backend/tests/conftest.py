# backend/tests/conftest.py
"""
Shared fixtures for the lesson booking engine tests.

Every test gets its own in-memory SQLite database so services can commit
freely. The environment is pointed at SQLite BEFORE any lessonbook import so
the module-level engine never reaches for Postgres.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CI", "true")

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Tuple

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lessonbook.api.dependencies.database import get_db
from lessonbook.database import Base
from lessonbook.main import app
import lessonbook.models  # noqa: F401
from lessonbook.models.lesson import Lesson
from lessonbook.models.teacher import (
    TeacherGroupRate,
    TeacherPackageOffer,
    TeacherProfile,
    TeacherRate,
)

# Default slot for directly inserted lessons: Wednesday 4 March 2026, 15:00 UTC
LESSON_DATE = date(2026, 3, 4)
LESSON_TIME = time(15, 0)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    """Session on a fresh database; services commit through it normally."""
    TestingSessionLocal = sessionmaker(
        bind=db_engine, autoflush=False, expire_on_commit=False, future=True
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def teacher_factory(db: Session) -> Callable[..., TeacherProfile]:
    def _create(
        display_name: str = "Maria Lopez",
        rates: Optional[Dict[int, object]] = None,
        package_offers: Iterable[Tuple[int, object]] = (),
        group_rates: Iterable[Tuple[int, object]] = (),
    ) -> TeacherProfile:
        teacher = TeacherProfile(display_name=display_name)
        teacher.rates = [
            TeacherRate(duration_minutes=duration, price=Decimal(str(price)))
            for duration, price in (rates if rates is not None else {30: 18, 60: 30}).items()
        ]
        teacher.package_offers = [
            TeacherPackageOffer(lesson_count=count, discount_percent=Decimal(str(pct)))
            for count, pct in package_offers
        ]
        teacher.group_rates = [
            TeacherGroupRate(group_size=size, price_per_person=Decimal(str(price)))
            for size, price in group_rates
        ]
        db.add(teacher)
        db.commit()
        return teacher

    return _create


@pytest.fixture
def teacher(teacher_factory) -> TeacherProfile:
    return teacher_factory()


@pytest.fixture
def lesson_factory(db: Session) -> Callable[..., Lesson]:
    """Insert a lesson row directly, bypassing pricing and timers."""

    def _create(teacher_id: str, student_id: str = "student-1", **overrides: object) -> Lesson:
        fields: Dict[str, object] = dict(
            student_id=student_id,
            teacher_id=teacher_id,
            scheduled_date=LESSON_DATE,
            scheduled_time=LESSON_TIME,
            duration_minutes=60,
            lesson_type="single",
            lesson_quantity=1,
            is_trial=False,
            base_price=Decimal("30.00"),
            commission_amount=Decimal("6.00"),
            tax_amount=Decimal("3.00"),
            total_amount=Decimal("33.00"),
            teacher_earnings=Decimal("24.00"),
            status="scheduled",
            completion_status="pending",
            attendance_status="pending",
            auto_complete_at=datetime.combine(LESSON_DATE, LESSON_TIME, tzinfo=timezone.utc)
            + timedelta(hours=49),
        )
        fields.update(overrides)
        lesson = Lesson(**fields)
        db.add(lesson)
        db.commit()
        return lesson

    return _create


@pytest.fixture
def client(db: Session):
    """TestClient whose requests share the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)
