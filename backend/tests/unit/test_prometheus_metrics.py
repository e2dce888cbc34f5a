"""Exposition output of the lessonbook Prometheus registry."""

from lessonbook.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def _sample(name: str, labels: dict) -> float:
    value = REGISTRY.get_sample_value(name, labels)
    return value or 0.0


class TestPrometheusMetrics:
    def test_lesson_transition_counter(self) -> None:
        labels = {"to_status": "completed", "trigger": "timer"}
        before = _sample("lessonbook_lesson_transitions_total", labels)

        prometheus_metrics.record_lesson_transition("completed", "timer")

        assert _sample("lessonbook_lesson_transitions_total", labels) == before + 1

    def test_quote_counter_labels_trial_flag(self) -> None:
        labels = {"lesson_type": "single", "is_trial": "true"}
        before = _sample("lessonbook_price_quotes_total", labels)

        prometheus_metrics.record_price_quote("single", True)

        assert _sample("lessonbook_price_quotes_total", labels) == before + 1

    def test_timer_outcomes(self) -> None:
        noop = {"kind": "reminder", "outcome": "noop"}
        before = _sample("lessonbook_lesson_timers_fired_total", noop)

        prometheus_metrics.record_timer("reminder", applied=False)

        assert _sample("lessonbook_lesson_timers_fired_total", noop) == before + 1

    def test_error_operations_count_errors(self) -> None:
        labels = {
            "service": "LessonLifecycleService",
            "operation": "cancel_lesson",
            "error_type": "X",
        }
        before = _sample("lessonbook_errors_total", labels)

        prometheus_metrics.record_service_operation(
            "LessonLifecycleService", "cancel_lesson", 0.01, status="error", error_type="X"
        )

        assert _sample("lessonbook_errors_total", labels) == before + 1

    def test_exposition_payload(self) -> None:
        prometheus_metrics.record_outbox_event("lesson.booked")

        payload = prometheus_metrics.get_metrics().decode()

        assert "lessonbook_outbox_events_total" in payload
        assert "lessonbook_service_operation_duration_seconds_bucket" in payload
        assert prometheus_metrics.get_content_type().startswith("text/plain")
