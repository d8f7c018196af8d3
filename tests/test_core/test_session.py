"""Tests for per-call session state."""

from __future__ import annotations

import pytest

from medvoice.core.session import CallSession, CallState, CurrentSpeaker, format_duration
from medvoice.core.transcript import Finality, Speaker, Utterance


class TestFormatDuration:
    """Tests for mm:ss formatting."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00"), (7, "00:07"), (65, "01:05"), (600, "10:00"), (-3, "00:00")],
    )
    def test_format(self, seconds: int, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestCallSession:
    """Tests for CallSession."""

    def test_defaults(self) -> None:
        session = CallSession(session_id="sess-001")

        assert session.state == CallState.IDLE
        assert session.current_speaker == CurrentSpeaker.NONE
        assert session.duration_seconds == 0
        assert session.transcript == []
        assert session.is_connected is False
        assert session.call_id

    def test_call_ids_are_unique(self) -> None:
        assert CallSession(session_id="a").call_id != CallSession(session_id="a").call_id

    @pytest.mark.parametrize(
        ("state", "connected"),
        [
            (CallState.IDLE, False),
            (CallState.CONNECTING, False),
            (CallState.ACTIVE, True),
            (CallState.ENDING, True),
            (CallState.ENDED, False),
        ],
    )
    def test_is_connected(self, state: CallState, connected: bool) -> None:
        assert CallSession(session_id="a", state=state).is_connected is connected

    def test_to_dict(self) -> None:
        session = CallSession(
            session_id="sess-001",
            state=CallState.ACTIVE,
            current_speaker=CurrentSpeaker.USER,
            duration_seconds=75,
            transcript=[
                Utterance(
                    id="u1",
                    speaker=Speaker.USER,
                    text="Hi",
                    timestamp="10:00:00",
                    finality=Finality.FINAL,
                )
            ],
        )

        data = session.to_dict()

        assert data["state"] == "active"
        assert data["current_speaker"] == "user"
        assert data["connected"] is True
        assert data["duration"] == "01:15"
        assert data["transcript"][0]["text"] == "Hi"
        assert data["error"] is None

    def test_current_speaker_from_speaker(self) -> None:
        assert CurrentSpeaker.from_speaker(Speaker.ASSISTANT) == CurrentSpeaker.ASSISTANT
