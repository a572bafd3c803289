from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest

# Custom registry so the service exposes only its own metrics
registry = CollectorRegistry()

uploads_total = Counter(
    'uploads_total',
    'Total upload attempts',
    ['status'],
    registry=registry
)

upload_duration_seconds = Histogram(
    'upload_duration_seconds',
    'Upload processing duration in seconds',
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry
)

upload_file_size_bytes = Histogram(
    'upload_file_size_bytes',
    'Size of stored design files in bytes',
    buckets=[10_000, 100_000, 1_000_000, 5_000_000, 10_000_000, 25_000_000, 50_000_000],
    registry=registry
)

degraded_operations_total = Counter(
    'degraded_operations_total',
    'Optional pipeline steps that failed without aborting the upload',
    ['step'],
    registry=registry
)

storage_operations_total = Counter(
    'storage_operations_total',
    'Object storage operations',
    ['operation', 'status'],
    registry=registry
)

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'status_code'],
    registry=registry
)


def get_metrics() -> bytes:
    """Render the registry in Prometheus text format"""
    return generate_latest(registry)
