"""Prometheus metrics for API service.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Invoice fetch and validation outcomes
- LLM analysis requests and latency

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Invoice fetch metrics
invoice_fetch_total = Counter(
    "invoice_fetch_total",
    "Total invoice fetches from source platforms",
    ["organization", "status"],  # success, not_found, failed
)

invoice_fetch_duration_seconds = Histogram(
    "invoice_fetch_duration_seconds",
    "Invoice fetch duration in seconds",
    ["organization"],
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

# Validation metrics
invoice_validations_total = Counter(
    "invoice_validations_total",
    "Total invoices validated",
    ["outcome"],  # valid, invalid
)

validation_issues_total = Counter(
    "validation_issues_total",
    "Total validation issues reported",
    ["severity"],  # error, warning
)

# Analysis metrics
analysis_requests_total = Counter(
    "analysis_requests_total",
    "Total LLM analysis requests",
    ["status"],  # success, skipped, failed
)

analysis_duration_seconds = Histogram(
    "analysis_duration_seconds",
    "LLM analysis duration in seconds",
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
