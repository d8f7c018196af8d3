"""Prometheus metrics for MedVoice.

Provides metrics for monitoring call outcomes, event quality and report handoff.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

# =============================================================================
# Counters
# =============================================================================

CALL_TOTAL = Counter(
    "medvoice_call_total",
    "Total calls by final outcome",
    ["outcome"],
)

EVENT_ANOMALIES = Counter(
    "medvoice_event_anomalies_total",
    "Malformed or out-of-order voice SDK events",
    ["kind"],
)

REPORT_HANDOFF_TOTAL = Counter(
    "medvoice_report_handoff_total",
    "Report handoffs by result status",
    ["status"],
)

# =============================================================================
# Gauges
# =============================================================================

ACTIVE_CALLS = Gauge(
    "medvoice_active_calls",
    "Calls currently in the Active state",
)

# =============================================================================
# Histograms
# =============================================================================

CALL_DURATION = Histogram(
    "medvoice_call_duration_seconds",
    "Call duration in seconds",
    buckets=[10, 30, 60, 120, 300, 600, 900, 1800],
)

REPORT_LATENCY = Histogram(
    "medvoice_report_latency_seconds",
    "Report-generation collaborator latency",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

# =============================================================================
# Helper Functions
# =============================================================================


def record_call_metrics(outcome: str, duration_seconds: float) -> None:
    """Record metrics for a finished call.

    Args:
        outcome: Call outcome (completed, dropped, error)
        duration_seconds: Seconds the call spent in the Active state
    """
    CALL_TOTAL.labels(outcome=outcome).inc()
    CALL_DURATION.observe(duration_seconds)


def record_handoff_metrics(status: str, latency_seconds: float | None = None) -> None:
    """Record the outcome of a report handoff.

    Args:
        status: Handoff status (generated, cannot_generate, failed, aborted)
        latency_seconds: Collaborator round-trip time, when it was called
    """
    REPORT_HANDOFF_TOTAL.labels(status=status).inc()
    if latency_seconds is not None and latency_seconds > 0:
        REPORT_LATENCY.observe(latency_seconds)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output.

    Returns:
        Metrics in Prometheus text exposition format.
    """
    return generate_latest()


def get_content_type() -> str:
    """Get the content type for Prometheus metrics.

    Returns:
        Content-Type header value for Prometheus metrics.
    """
    return CONTENT_TYPE_LATEST
