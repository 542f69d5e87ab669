"""
Prometheus metrics for monitoring
"""
import time
from functools import wraps

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

# ==================== Booking Metrics ====================

bookings_created_total = Counter(
    'bookings_created_total',
    'Total bookings created'
)

bookings_cancelled_total = Counter(
    'bookings_cancelled_total',
    'Total bookings cancelled'
)

booking_rejections_total = Counter(
    'booking_rejections_total',
    'Booking and cancellation requests rejected, by reason',
    ['reason']
)

booking_commit_retries_total = Counter(
    'booking_commit_retries_total',
    'Reservation commits rejected by the store and retried'
)

booking_creation_duration_seconds = Histogram(
    'booking_creation_duration_seconds',
    'Time to create a booking',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# ==================== Lock Metrics ====================

bus_lock_wait_seconds = Histogram(
    'bus_lock_wait_seconds',
    'Time spent waiting for a per-bus lock',
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

# ==================== Helper Functions ====================

def track_time(metric: Histogram):
    """Decorator to track execution time"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def record_rejection(reason: str):
    booking_rejections_total.labels(reason=reason).inc()


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format"""
    return generate_latest()


METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST
