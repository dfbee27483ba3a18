"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, partial, no_seats, conflict, rejected
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Seat claim + booking persistence latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

seat_claim_retries = Counter(
    'seat_claim_retries_total',
    'Seat claim attempts retried after a unique-index conflict'
)

seats_claimed = Counter(
    'seats_claimed_total',
    'Seats claimed by confirmed bookings'
)

# Payment metrics
payment_attempts = Counter(
    'payment_attempts_total',
    'Payment submissions',
    ['result']  # completed, invalid_amount, invalid_details, unsupported_method, ...
)

# Cancellation metrics
cancellations = Counter(
    'booking_cancellations_total',
    'Cancellation requests',
    ['outcome']  # refund_pending, no_payment, not_cancelable
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss/error
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


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, partial, no_seats, conflict, rejected"""
    booking_attempts.labels(status=status).inc()


def record_seat_claim_retry():
    seat_claim_retries.inc()


def record_seats_claimed(count: int):
    seats_claimed.inc(count)


def record_payment_attempt(result: str):
    payment_attempts.labels(result=result).inc()


def record_cancellation(outcome: str):
    cancellations.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
