"""
Prometheus Metrics Collection

Request and document serving metrics:
- HTTP request counts, durations and in-flight requests
- Document requests by outcome
- Document build duration per document
"""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

_metrics_cache: dict[str, Counter | Gauge | Histogram] = {}


def _get_or_create(
    metric_type: type[Counter] | type[Gauge] | type[Histogram],
    name: str,
    documentation: str,
    labelnames: list[str],
    registry: CollectorRegistry = REGISTRY,
) -> Counter | Gauge | Histogram:
    """Get a cached metric or register a new one, tolerating re-imports."""
    if name in _metrics_cache:
        return _metrics_cache[name]

    try:
        metric = metric_type(name, documentation, labelnames, registry=registry)
    except ValueError:
        # Already registered by an earlier import of this module
        metric = registry._names_to_collectors[name]

    _metrics_cache[name] = metric
    return metric


REQUEST_COUNT = _get_or_create(
    Counter,
    "docserve_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status_code"],
)

REQUEST_DURATION = _get_or_create(
    Histogram,
    "docserve_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)

ACTIVE_REQUESTS = _get_or_create(
    Gauge,
    "docserve_http_requests_active",
    "In-flight HTTP requests",
    [],
)

DOCUMENT_REQUESTS = _get_or_create(
    Counter,
    "docserve_document_requests_total",
    "API document requests by outcome",
    ["outcome"],
)

DOCUMENT_BUILD_DURATION = _get_or_create(
    Histogram,
    "docserve_document_build_seconds",
    "Time to build, filter and serialize an API document",
    ["document_name"],
)
