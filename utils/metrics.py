"""Prometheus metrics for retrieval evaluation runs.

This module provides metrics tracking for:
- Test case outcomes
- Retrieval call latency
- Active knowledge base connections
"""

from prometheus_client import Counter, Gauge, Histogram

# -------------------------------------------------------------------------
# Counters - Track cumulative event counts
# -------------------------------------------------------------------------

EVAL_CASES_TOTAL = Counter(
    "retrieval_eval_cases_total",
    "Total number of retrieval test cases executed",
    ["status"],
)

# -------------------------------------------------------------------------
# Histograms - Track distribution of values (latency tracking)
# -------------------------------------------------------------------------

RETRIEVAL_DURATION = Histogram(
    "retrieval_eval_retrieval_duration_seconds",
    "Retrieval call duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# -------------------------------------------------------------------------
# Gauges - Track current state values
# -------------------------------------------------------------------------

ACTIVE_CONNECTIONS = Gauge(
    "retrieval_eval_active_connections",
    "Number of active knowledge base connections",
    ["backend"],
)


def record_case_outcome(status: str, duration_seconds: float | None = None) -> None:
    """Record the outcome of one test case.

    Args:
        status: One of "passed", "failed", or "error"
        duration_seconds: Retrieval duration, if the call completed
    """
    EVAL_CASES_TOTAL.labels(status=status).inc()
    if duration_seconds is not None:
        RETRIEVAL_DURATION.observe(duration_seconds)
