"""Core call components.

This module provides the call lifecycle core:
- CallController: Call lifecycle state machine
- TranscriptReconciler: Partial/final transcript merging
- DurationTimer: Active-call duration counter
- ReportDispatcher: One-time report handoff
"""

from medvoice.core.context import DoctorAgent, SessionContext
from medvoice.core.events import CallEvent, normalize_event
from medvoice.core.handoff import HandoffResult, HandoffStatus, ReportDispatcher
from medvoice.core.lifecycle import CallController
from medvoice.core.session import CallSession, CallState, CurrentSpeaker, format_duration
from medvoice.core.timer import DurationTimer
from medvoice.core.transcript import (
    Finality,
    Speaker,
    TranscriptReconciler,
    Utterance,
    apply_chunk,
)

__all__ = [
    # Lifecycle
    "CallController",
    "CallSession",
    "CallState",
    "CurrentSpeaker",
    "format_duration",
    # Events
    "CallEvent",
    "normalize_event",
    # Transcript
    "Finality",
    "Speaker",
    "TranscriptReconciler",
    "Utterance",
    "apply_chunk",
    # Timer
    "DurationTimer",
    # Handoff
    "HandoffResult",
    "HandoffStatus",
    "ReportDispatcher",
    # Context
    "DoctorAgent",
    "SessionContext",
]
