"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Selection transaction metrics
selection_attempts = Counter(
    'selection_attempts_total',
    'Total selection transaction attempts',
    ['outcome']  # locked, invalid_state, not_found, validation_error
)

selection_retries = Counter(
    'selection_retry_attempts_total',
    'Selection retries after a guarded update matched no row'
)

selection_latency = Histogram(
    'selection_latency_seconds',
    'Selection transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Ledger metrics
payment_attempts = Counter(
    'payment_attempts_total',
    'Payment attempts',
    ['outcome']  # paid, conflict, forbidden, validation_error
)

reviews_posted = Counter(
    'reviews_posted_total',
    'Reviews successfully recorded'
)

applications_submitted = Counter(
    'applications_submitted_total',
    'Applications submitted',
    ['outcome']  # created, duplicate, rejected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_selection(outcome: str):
    selection_attempts.labels(outcome=outcome).inc()


def record_payment(outcome: str):
    payment_attempts.labels(outcome=outcome).inc()


def record_application(outcome: str):
    applications_submitted.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
