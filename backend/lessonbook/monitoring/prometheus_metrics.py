"""
Prometheus metrics for the lesson booking engine.

Service timings are fed by ``@BaseService.measure_operation``; lifecycle
transitions, quotes and outbox enqueues have their own counters.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so test runs never collide with the process default
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "lessonbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "lessonbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "lessonbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

lesson_transitions_total = Counter(
    "lessonbook_lesson_transitions_total",
    "Lesson status transitions by target status and trigger",
    ["to_status", "trigger"],  # trigger: student | teacher | admin | timer
    registry=REGISTRY,
)

price_quotes_total = Counter(
    "lessonbook_price_quotes_total",
    "Price quotes produced by lesson type",
    ["lesson_type", "is_trial"],
    registry=REGISTRY,
)

lesson_timers_fired_total = Counter(
    "lessonbook_lesson_timers_fired_total",
    "Durable lesson timers evaluated by the scan task",
    ["kind", "outcome"],  # outcome: applied | noop
    registry=REGISTRY,
)

outbox_events_total = Counter(
    "lessonbook_outbox_events_total",
    "Outbox events enqueued by type",
    ["event_type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records engine metrics and renders the exposition payload."""

    _lock: Lock = Lock()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_lesson_transition(to_status: str, trigger: str) -> None:
        lesson_transitions_total.labels(to_status=to_status, trigger=trigger).inc()

    @staticmethod
    def record_price_quote(lesson_type: str, is_trial: bool) -> None:
        price_quotes_total.labels(lesson_type=lesson_type, is_trial=str(is_trial).lower()).inc()

    @staticmethod
    def record_timer(kind: str, applied: bool) -> None:
        lesson_timers_fired_total.labels(kind=kind, outcome="applied" if applied else "noop").inc()

    @staticmethod
    def record_outbox_event(event_type: str) -> None:
        outbox_events_total.labels(event_type=event_type).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        with PrometheusMetrics._lock:
            return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()

# Histogram families need one labeled series for buckets to show before any observation
service_operation_duration_seconds.labels(service="bootstrap", operation="init").observe(0.0)
