"""Normalization of raw voice SDK callbacks into a closed set of events.

The SDK hands us loosely shaped payloads (``speech-start`` may arrive without a
speaker, ``message`` carries many types besides transcripts). Everything is
validated here so the state machine only ever sees well-formed variants.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from medvoice.core.transcript import Finality, Speaker
from medvoice.logging_config import get_logger
from medvoice.observability.metrics import EVENT_ANOMALIES

logger: Any = get_logger(__name__)

# SDK callback names
CALL_START = "call-start"
CALL_END = "call-end"
SPEECH_START = "speech-start"
SPEECH_END = "speech-end"
MESSAGE = "message"
ERROR = "error"

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


@dataclass(frozen=True, slots=True)
class CallStarted:
    """SDK connected; the conversation is live."""


@dataclass(frozen=True, slots=True)
class CallEnded:
    """SDK call finished (user, agent or network initiated)."""


@dataclass(frozen=True, slots=True)
class SpeechStarted:
    speaker: Speaker


@dataclass(frozen=True, slots=True)
class SpeechEnded:
    """Current speaker stopped talking."""


@dataclass(frozen=True, slots=True)
class TranscriptReceived:
    speaker: Speaker
    text: str
    finality: Finality


@dataclass(frozen=True, slots=True)
class SdkError:
    message: str


@dataclass(frozen=True, slots=True)
class SpeakerUnknown:
    """A speaker-bearing event arrived without a usable speaker."""

    source: str
    reason: str


@dataclass(frozen=True, slots=True)
class DurationTicked:
    """The duration timer advanced; emitted by the controller, not the SDK."""

    seconds: int


@dataclass(frozen=True, slots=True)
class Ignored:
    """Traffic with no bearing on call state (volume levels, tool calls, ...)."""

    source: str
    reason: str


CallEvent = (
    CallStarted
    | CallEnded
    | SpeechStarted
    | SpeechEnded
    | TranscriptReceived
    | SdkError
    | SpeakerUnknown
    | DurationTicked
    | Ignored
)


def parse_speaker(value: Any) -> Speaker | None:
    """Map a raw speaker/role value onto ``Speaker``; None when unusable."""
    if isinstance(value, Speaker):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Speaker(value.strip().lower())
    except ValueError:
        return None


def _anomaly(source: str, reason: str, payload: Any) -> SpeakerUnknown:
    logger.warning(f"Malformed {source} event ({reason}): {payload!r}")
    EVENT_ANOMALIES.labels(kind=reason).inc()
    return SpeakerUnknown(source=source, reason=reason)


def _error_message(payload: Any) -> str:
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if payload.get("message"):
            return str(payload["message"])
    elif isinstance(payload, str) and payload:
        return payload
    return UNKNOWN_ERROR_MESSAGE


def _normalize_message(payload: Any) -> CallEvent:
    if not isinstance(payload, Mapping):
        return Ignored(source=MESSAGE, reason="non-object message")

    message_type = payload.get("type")
    if message_type != "transcript":
        return Ignored(source=MESSAGE, reason=f"message type {message_type!r}")

    speaker = parse_speaker(payload.get("role"))
    if speaker is None:
        return _anomaly(MESSAGE, "invalid_role", payload.get("role"))

    text = payload.get("transcript")
    if not isinstance(text, str) or not text.strip():
        return _anomaly(MESSAGE, "empty_transcript", payload)

    # Anything other than an explicit "partial" closes the utterance
    finality = (
        Finality.PARTIAL if payload.get("transcriptType") == "partial" else Finality.FINAL
    )
    return TranscriptReceived(speaker=speaker, text=text, finality=finality)


def normalize_event(name: str, payload: Any = None) -> CallEvent:
    """Classify one raw SDK callback.

    Never raises: malformed input becomes ``SpeakerUnknown`` (logged as an
    anomaly) or ``Ignored``.

    Args:
        name: SDK callback name (``call-start``, ``message``, ...)
        payload: Callback argument, if any

    Returns:
        One of the ``CallEvent`` variants
    """
    if name == CALL_START:
        return CallStarted()

    if name == CALL_END:
        return CallEnded()

    if name == SPEECH_START:
        raw = payload.get("speaker") if isinstance(payload, Mapping) else None
        if raw is None:
            return _anomaly(SPEECH_START, "missing_speaker", payload)
        speaker = parse_speaker(raw)
        if speaker is None:
            return _anomaly(SPEECH_START, "invalid_speaker", payload)
        return SpeechStarted(speaker=speaker)

    if name == SPEECH_END:
        return SpeechEnded()

    if name == MESSAGE:
        return _normalize_message(payload)

    if name == ERROR:
        return SdkError(message=_error_message(payload))

    logger.debug(f"Ignoring unrecognized SDK event: {name!r}")
    return Ignored(source=str(name), reason="unrecognized event")
