"""Call lifecycle state machine.

Owns the ``CallSession`` for one consultation and moves it through
Idle -> Connecting -> Active -> Ending -> Ended, with an error path back to
Idle from any state. SDK callbacks arrive as normalized events on a single
queue and are applied one at a time, so no two handlers ever touch the
session concurrently.

State machine logic:
- Idle/Ended + start request (preconditions + microphone) -> Connecting
- Connecting + call-start -> Active (transcript, duration, speaker reset)
- Active + speech/transcript events -> Active
- Active + timer tick -> Active (duration written, DurationTicked queued)
- Active + stop request -> Ending (SDK stop requested)
- Active/Ending + call-end -> Ended
- Connecting/Active/Ending + SDK error -> Idle (ignored once Idle or Ended)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from medvoice.config import Settings, get_settings
from medvoice.core.events import (
    CallEnded,
    CallEvent,
    CallStarted,
    DurationTicked,
    Ignored,
    SdkError,
    SpeakerUnknown,
    SpeechEnded,
    SpeechStarted,
    TranscriptReceived,
    normalize_event,
)
from medvoice.core.exceptions import (
    CallBusyError,
    CallPreconditionError,
    CallStateError,
    MicrophonePermissionError,
    VoiceSDKError,
)
from medvoice.core.handoff import HandoffResult, ReportDispatcher
from medvoice.core.session import CallSession, CallState, CurrentSpeaker
from medvoice.core.timer import DurationTimer
from medvoice.core.transcript import TranscriptReconciler, Utterance
from medvoice.logging_config import get_logger
from medvoice.observability.metrics import ACTIVE_CALLS, EVENT_ANOMALIES, record_call_metrics

if TYPE_CHECKING:
    from medvoice.core.context import SessionContext
    from medvoice.services.reports.protocol import ReportGenerator
    from medvoice.services.voice.protocol import MicrophoneGate, VoiceClient

logger: Any = get_logger(__name__)

# SDK error fragments that point at a misconfigured doctor rather than a network fault
CONFIG_ERROR_MARKERS = (
    "assistant.voice.voiceId must be a string",
    "assistant.property VapiAgentConfig should not exist",
)
CONFIG_ERROR_HINT = (
    " Please ensure the doctor's voice ID and agent prompt are correctly configured."
)

# Events are only meaningful while the SDK call is up
LIVE_STATES = (CallState.ACTIVE, CallState.ENDING)

EventCallback = Callable[[CallEvent, CallSession], Awaitable[None]]


def describe_sdk_error(message: str) -> str:
    """User-facing text for an SDK error event."""
    text = f"Voice call error: {message}"
    if any(marker in message for marker in CONFIG_ERROR_MARKERS):
        text += CONFIG_ERROR_HINT
    return text


class CallController:
    """Drives one consultation's call through its lifecycle.

    Start and stop are the only suspending operations and at most one of them
    may be pending at a time. Everything else is a synchronous step applied
    by ``handle``.
    """

    def __init__(
        self,
        context: SessionContext | None,
        *,
        voice: VoiceClient,
        microphone: MicrophoneGate,
        reports: ReportGenerator,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._context = context
        self._voice = voice
        self._microphone = microphone
        self._reports = reports

        self._session = CallSession(session_id=context.session_id if context else "")
        self._reconciler = TranscriptReconciler()
        self._timer = DurationTimer(
            interval=self._settings.timer_interval_seconds,
            on_tick=self._on_tick,
        )
        self._dispatcher = ReportDispatcher(reports)
        self._events: asyncio.Queue[CallEvent | None] = asyncio.Queue()

        self._pending: str | None = None
        self._stop_settled: asyncio.Event | None = None
        self._active_seconds = 0

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def context(self) -> SessionContext | None:
        return self._context

    @property
    def session(self) -> CallSession:
        return self._session

    @property
    def state(self) -> CallState:
        return self._session.state

    @property
    def current_speaker(self) -> CurrentSpeaker:
        return self._session.current_speaker

    @property
    def transcript(self) -> list[Utterance]:
        return list(self._session.transcript)

    @property
    def last_error(self) -> str | None:
        return self._session.error_message

    @property
    def pending(self) -> str | None:
        """Name of the in-flight request ("start" or "stop"), if any."""
        return self._pending

    @property
    def timer(self) -> DurationTimer:
        return self._timer

    def snapshot(self) -> dict[str, Any]:
        return self._session.to_dict()

    # =========================================================================
    # Requests
    # =========================================================================

    async def start(self) -> None:
        """Request a new call.

        Raises:
            CallBusyError: Another start/stop is pending
            CallStateError: A call is already connecting or live
            CallPreconditionError: Voice id, agent prompt or context missing
            MicrophonePermissionError: User denied microphone access
            VoiceSDKError: The SDK rejected the start control call
        """
        self._ensure_not_pending()
        if self.state not in (CallState.IDLE, CallState.ENDED):
            raise CallStateError("start a call", self.state.value)

        self._check_preconditions()

        self._pending = "start"
        try:
            if not await self._request_microphone():
                error = MicrophonePermissionError()
                self._session.error_message = error.message
                logger.warning(f"Microphone denied for session {self._session.session_id}")
                raise error

            from medvoice.services.voice.assistant import build_assistant_config

            assert self._context is not None
            config = build_assistant_config(self._context, self._settings)

            self._new_session()
            self._transition(CallState.CONNECTING)

            try:
                await self._voice.start(config)
            except Exception as e:
                logger.error(f"Voice SDK start failed for call {self._session.call_id}: {e}")
                self._fail(f"Could not start the call: {e}", outcome="error", raw=False)
                raise VoiceSDKError(self._session.error_message or str(e)) from e
        finally:
            self._pending = None

    async def stop(self) -> HandoffResult:
        """End the live call and hand the transcript off for reporting.

        Waits for the SDK's call-end (bounded by ``stop_timeout_seconds``),
        then dispatches the report exactly once.

        Raises:
            CallBusyError: Another start/stop is pending
            CallStateError: No live call to stop
        """
        self._ensure_not_pending()
        if self.state != CallState.ACTIVE:
            raise CallStateError("end the call", self.state.value)

        self._pending = "stop"
        settled = asyncio.Event()
        self._stop_settled = settled
        try:
            self._session.stop_requested = True
            self._transition(CallState.ENDING)

            try:
                await self._voice.stop()
            except Exception as e:
                # Without a working SDK stop no call-end will come; finish locally
                logger.error(f"Voice SDK stop failed for call {self._session.call_id}: {e}")
            else:
                if not settled.is_set():
                    try:
                        await asyncio.wait_for(
                            settled.wait(),
                            timeout=self._settings.stop_timeout_seconds,
                        )
                    except TimeoutError:
                        logger.warning(
                            f"No call-end within {self._settings.stop_timeout_seconds}s "
                            f"for call {self._session.call_id}, ending locally"
                        )

            if self.state == CallState.ENDING:
                self._end()

            if self.state != CallState.ENDED:
                return self._dispatcher.abort()

            return await self._dispatcher.dispatch(
                self._session.transcript,
                self._context,
                self._context.session_id if self._context else None,
            )
        finally:
            self._pending = None
            self._stop_settled = None

    # =========================================================================
    # Event channel
    # =========================================================================

    def submit(self, name: str, payload: Any = None) -> CallEvent:
        """Normalize a raw SDK callback and queue it for ``run``."""
        event = normalize_event(name, payload)
        self._events.put_nowait(event)
        return event

    def close_channel(self) -> None:
        """Make ``run`` return once queued events are processed."""
        self._events.put_nowait(None)

    async def run(self, on_event: EventCallback | None = None) -> None:
        """Apply queued events in delivery order until the channel closes."""
        while True:
            event = await self._events.get()
            if event is None:
                break
            self.handle(event)
            if on_event is not None:
                await on_event(event, self._session)

    def handle(self, event: CallEvent) -> None:
        """Apply one normalized event to the session."""
        if isinstance(event, CallStarted):
            self._on_call_started()

        elif isinstance(event, CallEnded):
            if self.state in LIVE_STATES:
                self._end()
            else:
                self._anomaly("unexpected_call_end", f"call-end while {self.state.value}")

        elif isinstance(event, SpeechStarted):
            if self._is_live("speech-start"):
                self._session.current_speaker = CurrentSpeaker.from_speaker(event.speaker)

        elif isinstance(event, SpeechEnded | SpeakerUnknown):
            if self.state in LIVE_STATES:
                self._session.current_speaker = CurrentSpeaker.NONE

        elif isinstance(event, TranscriptReceived):
            if self._is_live("transcript"):
                self._session.transcript = self._reconciler.apply(
                    event.speaker, event.text, event.finality
                )
                self._session.current_speaker = CurrentSpeaker.from_speaker(event.speaker)

        elif isinstance(event, SdkError):
            if self.state in (CallState.IDLE, CallState.ENDED):
                # Ended is terminal for this call; the error cannot reopen it
                self._anomaly(
                    "error_outside_call", f"error while {self.state.value}: {event.message}"
                )
                return
            logger.error(f"Voice SDK error on call {self._session.call_id}: {event.message}")
            self._fail(event.message, outcome="error")

        elif isinstance(event, DurationTicked):
            # Duration is written by the timer callback; the event only notifies listeners
            pass

        elif isinstance(event, Ignored):
            logger.debug(f"Ignored {event.source}: {event.reason}")

    async def close(self) -> None:
        """Release the timer and channel; a still-live call counts as dropped."""
        if self.state in (CallState.CONNECTING, *LIVE_STATES):
            self._fail("Call connection closed.", outcome="dropped", raw=False)
        await self._timer.aclose()
        self.close_channel()

    # =========================================================================
    # Transitions
    # =========================================================================

    def _on_call_started(self) -> None:
        if self.state != CallState.CONNECTING:
            self._anomaly("unexpected_call_start", f"call-start while {self.state.value}")
            return

        self._reconciler.reset()
        self._session.transcript = []
        self._session.duration_seconds = 0
        self._session.current_speaker = CurrentSpeaker.NONE
        self._session.started_at = datetime.now(UTC)
        self._transition(CallState.ACTIVE)

    def _end(self) -> None:
        self._session.current_speaker = CurrentSpeaker.NONE
        self._session.ended_at = datetime.now(UTC)
        outcome = "completed" if self._session.stop_requested else "dropped"
        self._transition(CallState.ENDED)
        record_call_metrics(outcome, self._active_seconds)
        self._settle_stop()

    def _fail(self, message: str, *, outcome: str, raw: bool = True) -> None:
        """Error path: any state -> Idle, surfacing ``message``."""
        was_live = self.state in (CallState.CONNECTING, *LIVE_STATES)
        self._session.error_message = describe_sdk_error(message) if raw else message
        self._session.current_speaker = CurrentSpeaker.NONE
        self._transition(CallState.IDLE)
        self._session.duration_seconds = 0
        if was_live:
            record_call_metrics(outcome, self._active_seconds)
        self._settle_stop()

    def _transition(self, new_state: CallState) -> None:
        old_state = self._session.state
        if old_state == CallState.ACTIVE and new_state != CallState.ACTIVE:
            self._leave_active()

        self._session.state = new_state
        if new_state == CallState.ACTIVE and old_state != CallState.ACTIVE:
            self._active_seconds = 0
            self._timer.start()
            ACTIVE_CALLS.inc()

        if old_state != new_state:
            logger.info(
                f"Call {self._session.call_id}: {old_state.value} -> {new_state.value}"
            )

    def _leave_active(self) -> None:
        self._active_seconds = self._timer.seconds
        self._timer.cancel()
        self._session.duration_seconds = 0
        ACTIVE_CALLS.dec()

    def _on_tick(self, seconds: int) -> None:
        if self.state == CallState.ACTIVE:
            self._session.duration_seconds = seconds
            self._events.put_nowait(DurationTicked(seconds=seconds))

    def _settle_stop(self) -> None:
        if self._stop_settled is not None:
            self._stop_settled.set()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _new_session(self) -> None:
        session_id = self._context.session_id if self._context else ""
        self._session = CallSession(session_id=session_id)
        self._reconciler.reset()
        self._dispatcher = ReportDispatcher(self._reports)
        self._active_seconds = 0

    def _ensure_not_pending(self) -> None:
        if self._pending is not None:
            raise CallBusyError(f"A {self._pending} request is already in progress.")

    def _check_preconditions(self) -> None:
        if self._context is None:
            message = "Session details not loaded. Cannot start call."
        else:
            missing = self._context.missing_fields()
            if not missing:
                return
            if "voice_id" in missing:
                message = "Invalid Voice ID. Please check doctor configuration."
            else:
                message = "Invalid Agent Prompt. Please check doctor configuration."

        logger.error(f"Start blocked for session {self._session.session_id}: {message}")
        self._session.error_message = message
        raise CallPreconditionError(message)

    async def _request_microphone(self) -> bool:
        try:
            return bool(
                await asyncio.wait_for(
                    self._microphone.request(),
                    timeout=self._settings.permission_timeout_seconds,
                )
            )
        except TimeoutError:
            logger.warning(f"Microphone permission timed out for session {self._session.session_id}")
            return False

    def _is_live(self, kind: str) -> bool:
        if self.state in LIVE_STATES:
            return True
        self._anomaly(f"{kind}_outside_call", f"{kind} while {self.state.value}")
        return False

    def _anomaly(self, kind: str, detail: str) -> None:
        logger.warning(f"Discarding event on call {self._session.call_id}: {detail}")
        EVENT_ANOMALIES.labels(kind=kind).inc()
