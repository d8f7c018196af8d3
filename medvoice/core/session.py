"""Per-call session state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from medvoice.core.transcript import Speaker, Utterance


class CallState(str, Enum):
    """Call lifecycle states."""

    IDLE = "idle"  # No call, or the last attempt failed
    CONNECTING = "connecting"  # Start requested, waiting for call-start
    ACTIVE = "active"  # Conversation live, timer running
    ENDING = "ending"  # Stop requested, waiting for call-end
    ENDED = "ended"  # Call finished


class CurrentSpeaker(str, Enum):
    """Speaker indicator shown while the call is live."""

    NONE = "none"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def from_speaker(cls, speaker: Speaker) -> CurrentSpeaker:
        return cls(speaker.value)


def format_duration(seconds: int) -> str:
    """Format seconds as mm:ss."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


@dataclass
class CallSession:
    """State for a single call attempt.

    Created on each start request, owned by the ``CallController``. The
    transcript is written only through the reconciler and the duration only
    through the timer.
    """

    session_id: str
    call_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: CallState = CallState.IDLE
    current_speaker: CurrentSpeaker = CurrentSpeaker.NONE
    duration_seconds: int = 0
    transcript: list[Utterance] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    ended_at: datetime | None = None
    stop_requested: bool = False
    error_message: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.state in (CallState.ACTIVE, CallState.ENDING)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for API responses and WebSocket state frames."""
        return {
            "session_id": self.session_id,
            "call_id": self.call_id,
            "state": self.state.value,
            "current_speaker": self.current_speaker.value,
            "connected": self.is_connected,
            "duration_seconds": self.duration_seconds,
            "duration": format_duration(self.duration_seconds),
            "transcript": [u.to_dict() for u in self.transcript],
            "error": self.error_message,
        }
