"""Prometheus metrics definitions for Fridgelens."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "fridgelens_http_requests_total",
    "Total number of HTTP requests processed by the Fridgelens API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "fridgelens_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Fridgelens API",
    ["method", "path"],
)

BACKEND_CALLS = Counter(
    "fridgelens_backend_calls_total",
    "Number of model backend calls by backend, operation and outcome",
    ["backend", "operation", "outcome"],
)

BACKEND_LATENCY = Histogram(
    "fridgelens_backend_call_duration_seconds",
    "Latency of model backend calls",
    ["backend", "operation"],
)

STORE_OPERATIONS = Counter(
    "fridgelens_store_operations_total",
    "Number of evaluation store operations by operation and outcome",
    ["operation", "outcome"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "BACKEND_CALLS",
    "BACKEND_LATENCY",
    "STORE_OPERATIONS",
]
