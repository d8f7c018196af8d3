"""Tests for log redaction helpers."""

from __future__ import annotations

from medvoice.logging_config import mask_email, sanitize_for_log


class TestMaskEmail:
    """Tests for mask_email."""

    def test_masks_local_part(self) -> None:
        assert mask_email("jane.doe@example.com") == "ja***@example.com"

    def test_invalid_address(self) -> None:
        assert mask_email("") == "***"
        assert mask_email("not-an-email") == "***"


class TestSanitizeForLog:
    """Tests for sanitize_for_log."""

    def test_redacts_patient_content(self, session_context) -> None:
        result = sanitize_for_log(session_context.to_wire())

        assert result["notes"] == "[REDACTED]"
        assert result["agentPrompt"] == "[REDACTED]"
        assert result["SelectedDoctor"]["agentPrompt"] == "[REDACTED]"
        assert result["createdBy"] == "pa***@example.com"
        assert result["sessionID"] == "sess-001"

    def test_masks_email_fields(self) -> None:
        result = sanitize_for_log({"user_email": "someone@clinic.org", "count": 3})

        assert result == {"user_email": "so***@clinic.org", "count": 3}

    def test_input_unchanged(self) -> None:
        data = {"notes": "private"}
        sanitize_for_log(data)
        assert data == {"notes": "private"}
