# backend/lessonbook/tasks/lesson_tasks.py
"""
Celery tasks for the lesson lifecycle.

``process_due_lesson_timers`` is driven by beat; the per-lesson tasks let the
API or operators nudge a single lesson without waiting for the next scan.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar, cast

from ..database import SessionLocal
from ..services.lesson_lifecycle_service import LessonLifecycleService
from .celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)

TaskCallable = TypeVar("TaskCallable", bound=Callable[..., Any])


def typed_task(*task_args: Any, **task_kwargs: Any) -> Callable[[TaskCallable], TaskCallable]:
    return cast(Callable[[TaskCallable], TaskCallable], celery_app.task(*task_args, **task_kwargs))


@typed_task(
    base=BaseTask,
    name="lessonbook.tasks.lesson_tasks.process_due_lesson_timers",
    bind=True,
    max_retries=2,
)
def process_due_lesson_timers(self: BaseTask, limit: int = 500) -> Dict[str, int]:
    """Fire reminders, auto-completions and expired reschedule offers that are due."""
    db = SessionLocal()
    try:
        return LessonLifecycleService(db).process_due_timers(limit=limit)
    except Exception as exc:
        logger.exception("Lesson timer scan failed")
        raise self.retry(exc=exc)
    finally:
        db.close()


@typed_task(
    base=BaseTask,
    name="lessonbook.tasks.lesson_tasks.auto_complete_lesson",
    bind=True,
    max_retries=3,
)
def auto_complete_lesson(self: BaseTask, lesson_id: str) -> Dict[str, Optional[str]]:
    db = SessionLocal()
    try:
        completed = LessonLifecycleService(db).auto_complete_lesson(lesson_id)
        return {"lesson_id": lesson_id, "status": "completed" if completed else "skipped"}
    finally:
        db.close()


@typed_task(
    base=BaseTask,
    name="lessonbook.tasks.lesson_tasks.send_lesson_reminder",
    bind=True,
    max_retries=3,
)
def send_lesson_reminder(self: BaseTask, lesson_id: str) -> Dict[str, Optional[str]]:
    db = SessionLocal()
    try:
        sent = LessonLifecycleService(db).send_reminder(lesson_id)
        return {"lesson_id": lesson_id, "status": "sent" if sent else "skipped"}
    finally:
        db.close()
