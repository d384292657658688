"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking lifecycle metrics
booking_transitions = Counter(
    'booking_transitions_total',
    'Booking lifecycle operations',
    ['action', 'result']  # action: request/accept/reject/cancel; result: success/conflict/not_found/error
)

booking_latency = Histogram(
    'booking_transition_latency_seconds',
    'Booking lifecycle operation latency',
    ['action'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Seat counter movements
seat_adjustments = Counter(
    'ride_seat_adjustments_total',
    'Seat counter changes applied to rides',
    ['direction']  # decrement, increment
)

# Database metrics
db_rollbacks = Counter(
    'db_rollbacks_total',
    'Transactions rolled back by an operation',
    ['operation']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
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


def record_booking_transition(action: str, result: str):
    """Record a lifecycle operation. Result: success, conflict, not_found, error"""
    booking_transitions.labels(action=action, result=result).inc()


def record_seat_adjustment(direction: str):
    seat_adjustments.labels(direction=direction).inc()


def record_rollback(operation: str):
    db_rollbacks.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
