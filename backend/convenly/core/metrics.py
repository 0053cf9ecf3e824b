"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Identity metrics
login_attempts = Counter(
    'convenly_login_attempts_total',
    'Total login attempts',
    ['result']  # success, invalid_credentials, invalid_input
)

registrations = Counter(
    'convenly_registrations_total',
    'Total user registration attempts',
    ['result']  # success, conflict, invalid_input
)

acl_decisions = Counter(
    'convenly_acl_decisions_total',
    'Authorization gate decisions',
    ['result']  # allowed, denied
)

# Event catalog metrics
attendance_operations = Counter(
    'convenly_attendance_operations_total',
    'Attendance registrations and removals',
    ['operation', 'result']  # register/remove, success/duplicate/missing
)

filter_query_latency = Histogram(
    'convenly_event_filter_latency_seconds',
    'Latency of the filtered event query',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0]
)

# Store metrics
store_timeouts = Counter(
    'convenly_store_timeouts_total',
    'Repository operations aborted by the per-operation deadline',
    ['operation']
)

# Cache metrics
cache_operations = Counter(
    'convenly_cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_login(result: str):
    login_attempts.labels(result=result).inc()

def record_registration(result: str):
    registrations.labels(result=result).inc()

def record_acl_decision(allowed: bool):
    acl_decisions.labels(result="allowed" if allowed else "denied").inc()

def record_attendance(operation: str, result: str):
    attendance_operations.labels(operation=operation, result=result).inc()

def record_store_timeout(operation: str):
    store_timeouts.labels(operation=operation).inc()

def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
