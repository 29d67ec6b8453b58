"""Prometheus metrics and the helpers that record them."""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

HTTP_REQUESTS = Counter(
    "linkhop_http_requests_total",
    "HTTP requests handled",
    ["method", "endpoint", "status_code"],
)

HTTP_LATENCY = Histogram(
    "linkhop_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

REDIRECTS = Counter(
    "linkhop_redirects_total",
    "Redirects served",
    ["status_code"],
)

LINK_OPERATIONS = Counter(
    "linkhop_link_operations_total",
    "Link lifecycle operations",
    ["operation"],  # create, update, delete
)

CACHE_LOOKUPS = Counter(
    "linkhop_cache_lookups_total",
    "Look-aside cache outcomes",
    ["result"],  # hit, miss, error
)

CLICKS = Counter(
    "linkhop_clicks_total",
    "Click recordings by outcome",
    ["result"],  # recorded, event_failed, failed
)

CLICK_TASKS_IN_FLIGHT = Gauge(
    "linkhop_click_tasks_in_flight",
    "Background click recordings not yet finished",
)


def normalize_endpoint(path: str) -> str:
    """Collapse path parameters so label cardinality stays bounded."""
    if path.startswith("/api/v1/links/"):
        if path.endswith("/stats"):
            return "/api/v1/links/{code}/stats"
        return "/api/v1/links/{id}"
    if path.startswith("/api/") or path in ("/", "/metrics", "/docs", "/openapi.json"):
        return path
    return "/{code}"


def observe_request(method: str, path: str, status_code: int, duration: float) -> None:
    endpoint = normalize_endpoint(path)
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
    HTTP_LATENCY.labels(method=method, endpoint=endpoint).observe(duration)


def record_redirect(status_code: int) -> None:
    REDIRECTS.labels(status_code=status_code).inc()


def record_link_operation(operation: str) -> None:
    LINK_OPERATIONS.labels(operation=operation).inc()


def record_cache_result(result: str) -> None:
    CACHE_LOOKUPS.labels(result=result).inc()


def record_click_result(result: str) -> None:
    CLICKS.labels(result=result).inc()


def set_click_tasks_in_flight(count: int) -> None:
    CLICK_TASKS_IN_FLIGHT.set(count)


def render_metrics() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
