"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation commit attempts',
    ['resource_type', 'outcome']  # committed, conflict, capacity_exceeded, ...
)

commit_latency = Histogram(
    'reservation_commit_latency_seconds',
    'Latency of the atomic commit step',
    ['resource_type'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

status_transitions = Counter(
    'reservation_status_transitions_total',
    'Reservation status transitions applied',
    ['to_status']
)

# Pricing metrics
price_rule_ambiguities = Counter(
    'price_rule_ambiguities_total',
    'Price resolutions aborted because two rules tied on every key'
)

# HTTP metrics
request_latency = Histogram(
    'http_request_duration_seconds',
    'Request latency by route template and status class',
    ['method', 'route', 'status_class'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Capacity snapshot cache operations',
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


def record_reservation_attempt(resource_type: str, outcome: str):
    """Record a commit attempt. Outcome: committed or a lowercase rejection kind."""
    reservation_attempts.labels(resource_type=resource_type, outcome=outcome).inc()


def record_transition(to_status: str):
    status_transitions.labels(to_status=to_status).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_request(method: str, route: str, status_code: int, duration_seconds: float):
    request_latency.labels(
        method=method, route=route, status_class=f"{status_code // 100}xx"
    ).observe(duration_seconds)
