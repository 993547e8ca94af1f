from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# HTTP
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Store: every filtered read is a full collection scan
store_scans_total = Counter('store_scans_total', 'Total collection scans', ['collection'])
store_scanned_records_total = Counter(
    'store_scanned_records_total',
    'Records read by collection scans',
    ['collection']
)
store_writes_total = Counter('store_writes_total', 'Total record writes', ['collection', 'operation'])
store_stale_writes_total = Counter(
    'store_stale_writes_total',
    'Writes rejected by the version check',
    ['collection']
)

def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
