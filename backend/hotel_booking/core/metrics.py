"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

booking_operations = Counter(
    'booking_operations_total',
    'Booking operations by outcome',
    ['operation', 'outcome']  # reserve/change/fetch x success/rejected/not_found/error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

auth_failures = Counter(
    'auth_failures_total',
    'Rejected bearer tokens',
    ['reason']  # missing, invalid (bad signature, expired, or no session)
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_operation(operation: str, outcome: str):
    """Record a booking operation. Outcome: success, rejected, not_found, error"""
    booking_operations.labels(operation=operation, outcome=outcome).inc()


def record_auth_failure(reason: str):
    auth_failures.labels(reason=reason).inc()
