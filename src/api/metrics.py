from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # already registered, reuse the existing collector
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "calendar_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "calendar_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

EVENTS_CREATED_TOTAL = get_or_create_metric(
    "calendar_events_created_total",
    "Events persisted, by how they were created",
    Counter,
    labelnames=["source"],
)

EVENTS_DELETED_TOTAL = get_or_create_metric(
    "calendar_events_deleted_total", "Events deleted", Counter
)

TEXT_EXTRACTIONS_TOTAL = get_or_create_metric(
    "calendar_text_extractions_total",
    "Natural-language event extractions",
    Counter,
    labelnames=["result"],
)

LOAD_TEST_RUNS_TOTAL = get_or_create_metric(
    "calendar_load_test_runs_total", "Load test runs", Counter, labelnames=["target"]
)

EVENTS_STORED = get_or_create_metric(
    "calendar_events_stored", "Events currently in the store", Gauge
)
