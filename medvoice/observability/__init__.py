"""Observability module for metrics."""

from medvoice.observability.metrics import (
    ACTIVE_CALLS,
    CALL_DURATION,
    CALL_TOTAL,
    EVENT_ANOMALIES,
    REPORT_HANDOFF_TOTAL,
    REPORT_LATENCY,
    record_call_metrics,
    record_handoff_metrics,
)

__all__ = [
    "CALL_TOTAL",
    "CALL_DURATION",
    "ACTIVE_CALLS",
    "EVENT_ANOMALIES",
    "REPORT_HANDOFF_TOTAL",
    "REPORT_LATENCY",
    "record_call_metrics",
    "record_handoff_metrics",
]
