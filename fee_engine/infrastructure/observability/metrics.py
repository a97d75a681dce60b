"""Prometheus metrics for schedule builds, payment statuses and reminder webhooks"""

from typing import Iterable

from prometheus_client import Counter, Histogram

# Schedule metrics
schedule_counter = Counter(
    "fee_schedule_built_total",
    "Total fee schedules built",
    ["payment_plan"],  # one_shot | sem_wise | instalment_wise
)

# Status metrics
line_status_counter = Counter(
    "fee_line_status_total",
    "Schedule line statuses resolved",
    ["status"],
)

integrity_warning_counter = Counter(
    "fee_integrity_warnings_total",
    "Transactions that did not match any schedule line",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "reminder_webhook_latency_seconds",
    "Reminder webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "reminder_webhook_failures_total",
    "Failed reminder webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_schedule(payment_plan: str) -> None:
    schedule_counter.labels(payment_plan=payment_plan).inc()


def record_line_statuses(statuses: Iterable[str]) -> None:
    """Record one observation per resolved line for status distribution dashboards"""
    for status in statuses:
        line_status_counter.labels(status=status).inc()
