"""
Prometheus metrics for monitoring
"""
from prometheus_client import Counter, Gauge, Histogram, generate_latest, REGISTRY
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import time

# Counters
UPLOAD_COUNT = Counter('upload_documents_total', 'Total documents uploaded')
UPLOAD_PAGES = Counter('upload_pages_total', 'Total pages extracted from uploads')
CHUNK_COUNT = Counter('chunks_created_total', 'Total chunks persisted')
INGEST_FAILURES = Counter(
    'ingest_failures_total',
    'Documents that ended in error status',
    ['stage']  # extraction/chunking/embedding/persistence
)
CHAT_COUNT = Counter('chat_requests_total', 'Total chat requests')
QUIZ_COUNT = Counter(
    'quiz_generations_total',
    'Total quiz generations',
    ['outcome']  # parsed/fallback
)
VIDEO_COUNT = Counter(
    'video_recommendations_total',
    'Total study-video recommendation requests',
    ['outcome']  # parsed/fallback
)

EMBED_CALLS = Counter(
    'embedding_calls_total',
    'Total embedding calls',
    ['status']  # success/failure
)

LLM_CALLS = Counter(
    'llm_calls_total',
    'Total LLM API calls',
    ['status']  # success/failure
)

# Gauges
ACTIVE_REQUESTS = Gauge('active_requests', 'Number of active requests')

# Histograms
REQUEST_DURATION = Histogram(
    'request_duration_seconds',
    'Request duration in seconds',
    ['method', 'endpoint', 'status']
)

INGEST_DURATION = Histogram(
    'ingest_duration_seconds',
    'Time spent in the ingestion pipeline per document'
)

# Registry
metrics_registry = REGISTRY


def get_metrics_text() -> str:
    """Get metrics in Prometheus text format"""
    return generate_latest(metrics_registry).decode('utf-8')


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track request metrics"""

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoints themselves
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.time()

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).observe(duration)

            return response

        finally:
            ACTIVE_REQUESTS.dec()
