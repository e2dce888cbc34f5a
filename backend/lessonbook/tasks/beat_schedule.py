# backend/lessonbook/tasks/beat_schedule.py
"""
Celery Beat schedule for the lesson booking engine.

The only periodic job scans durable lesson timers. Each scan is safe to
overlap with the previous one because timers are claimed individually.
"""

from datetime import timedelta
from typing import Any, Dict


def get_beat_schedule(scan_seconds: int = 60) -> Dict[str, Dict[str, Any]]:
    return {
        "process-due-lesson-timers": {
            "task": "lessonbook.tasks.lesson_tasks.process_due_lesson_timers",
            "schedule": timedelta(seconds=scan_seconds),
            "options": {
                "queue": "lessons",
                # Expire before the next scan so a backlog never stacks runs
                "expires": max(scan_seconds - 5, 5),
            },
        },
    }
