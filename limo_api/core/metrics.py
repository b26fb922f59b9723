"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

distance_lookups = Counter(
    'distance_lookups_total',
    'Distance resolutions by source',
    ['source'],
    registry=registry
)

distance_fallbacks = Counter(
    'distance_fallbacks_total',
    'Distance lookups that fell back to the rough estimate',
    ['reason'],
    registry=registry
)

distance_provider_duration = Histogram(
    'distance_provider_duration_seconds',
    'Distance matrix request duration in seconds',
    ['outcome'],
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total distance cache hits',
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total distance cache misses',
    registry=registry
)

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total rate limit exceeded events',
    ['bucket'],
    registry=registry
)

quotes_issued = Counter(
    'quotes_issued_total',
    'Total quotes returned to callers',
    registry=registry
)

bookings_created = Counter(
    'bookings_created_total',
    'Total booking requests accepted',
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    return generate_latest(registry).decode('utf-8')
