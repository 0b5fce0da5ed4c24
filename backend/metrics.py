"""
Prometheus Metrics
==================
Counters and histograms for the analytics engine.
"""

from prometheus_client import Counter, Histogram

FETCH_FAILURES = Counter(
    "analytics_fetch_failures_total",
    "Sub-fetches that failed and were treated as empty",
    ["source"],
)

OPERATION_SECONDS = Histogram(
    "analytics_operation_seconds",
    "Wall time of public analytics operations",
    ["operation"],
)

OPERATION_FAILURES = Counter(
    "analytics_operation_failures_total",
    "Analytics operations that degraded to an empty result",
    ["operation"],
)
