from prometheus_client import CollectorRegistry, Counter, Histogram

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"],
    registry=REGISTRY,
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"],
    registry=REGISTRY,
)
# Appels sortants vers le Users Service (validation de l'utilisateur)
EXTERNAL_CALL_COUNT = Counter(
    "external_service_calls_total",
    "Total external service calls",
    ["service", "target_service", "status"],
    registry=REGISTRY,
)
EXTERNAL_CALL_LATENCY = Histogram(
    "external_service_call_duration_seconds",
    "External service call latency in seconds",
    ["service", "target_service"],
    registry=REGISTRY,
)
