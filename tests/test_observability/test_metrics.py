"""Tests for Prometheus metrics."""

from __future__ import annotations

from medvoice.observability.metrics import (
    ACTIVE_CALLS,
    CALL_TOTAL,
    EVENT_ANOMALIES,
    REPORT_HANDOFF_TOTAL,
    get_content_type,
    get_metrics,
    record_call_metrics,
    record_handoff_metrics,
)


class TestMetricsModule:
    """Tests for metrics module functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """Test get_metrics returns bytes."""
        result = get_metrics()
        assert isinstance(result, bytes)

    def test_get_content_type(self) -> None:
        """Test get_content_type returns valid content type."""
        content_type = get_content_type()
        assert "text/plain" in content_type or "text/openmetrics" in content_type

    def test_record_call_metrics(self) -> None:
        """Test recording a finished call."""
        before = CALL_TOTAL.labels(outcome="completed")._value.get()

        record_call_metrics(outcome="completed", duration_seconds=120.0)

        assert CALL_TOTAL.labels(outcome="completed")._value.get() == before + 1
        output = get_metrics().decode("utf-8")
        assert "medvoice_call_total" in output
        assert "medvoice_call_duration_seconds" in output

    def test_record_handoff_with_latency(self) -> None:
        """Test recording a handoff that called the collaborator."""
        before = REPORT_HANDOFF_TOTAL.labels(status="generated")._value.get()

        record_handoff_metrics("generated", latency_seconds=1.5)

        assert REPORT_HANDOFF_TOTAL.labels(status="generated")._value.get() == before + 1
        assert "medvoice_report_latency_seconds" in get_metrics().decode("utf-8")

    def test_record_handoff_without_latency(self) -> None:
        """Test a handoff that never called out still counts."""
        before = REPORT_HANDOFF_TOTAL.labels(status="cannot_generate")._value.get()

        record_handoff_metrics("cannot_generate")

        assert REPORT_HANDOFF_TOTAL.labels(status="cannot_generate")._value.get() == before + 1


class TestActiveCallsGauge:
    """Tests for the active calls gauge."""

    def test_active_calls_inc_dec(self) -> None:
        """Test active calls gauge can be incremented and decremented."""
        initial = ACTIVE_CALLS._value.get()

        ACTIVE_CALLS.inc()
        assert ACTIVE_CALLS._value.get() == initial + 1

        ACTIVE_CALLS.dec()
        assert ACTIVE_CALLS._value.get() == initial


class TestEventAnomalies:
    """Tests for the SDK event anomaly counter."""

    def test_labels_by_kind(self) -> None:
        EVENT_ANOMALIES.labels(kind="unexpected_call_end").inc()

        output = get_metrics().decode("utf-8")
        assert 'kind="unexpected_call_end"' in output
