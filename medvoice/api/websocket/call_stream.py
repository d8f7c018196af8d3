"""WebSocket handler for browser-relayed voice SDK calls.

The voice SDK runs in the patient's browser. The browser relays every SDK
callback here and executes the control calls we send back:

Inbound (browser -> service):
- {"event": "sdk", "name": "<sdk event>", "payload": {...}}
- {"event": "start"} / {"event": "stop"}
- {"event": "permission", "granted": true|false}

Outbound (service -> browser):
- {"event": "control", "action": "start", "config": {...}} / {"action": "stop"}
- {"event": "permission-request"}
- {"event": "state", ...call snapshot}, after every processed event and timer tick
- {"event": "report", "status": ..., "report": ..., "error": ...}
- {"event": "error", "message": ...}
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from medvoice.config import Settings, get_settings
from medvoice.core.context import SessionContext
from medvoice.core.events import CallEvent, Ignored
from medvoice.core.exceptions import CallError
from medvoice.core.lifecycle import CallController
from medvoice.core.session import CallSession
from medvoice.logging_config import get_logger
from medvoice.services.reports.client import ReportClient
from medvoice.services.reports.protocol import ReportGenerator
from medvoice.services.sessions.client import SessionLookupClient
from medvoice.services.sessions.exceptions import (
    SessionLookupError,
    SessionNotFoundError,
    SessionUnauthorizedError,
)
from medvoice.services.sessions.protocol import SessionLookup
from medvoice.services.voice.protocol import AssistantConfig

logger: Any = get_logger(__name__)

# Application-defined close codes (4000-4999)
CLOSE_NOT_FOUND = 4404
CLOSE_UNAUTHORIZED = 4403
CLOSE_CONFLICT = 4409
CLOSE_TRY_AGAIN = 1013
CLOSE_INTERNAL = 1011

RUNNER_SHUTDOWN_TIMEOUT = 5.0


class CallCapacityError(Exception):
    """Raised when the system is at maximum call capacity."""

    pass


class DuplicateCallError(Exception):
    """Raised when a session already has a live call connection."""

    pass


class BrowserRelay:
    """Voice SDK control and microphone gate backed by the browser WebSocket.

    Implements both ``VoiceClient`` and ``MicrophoneGate``.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._permission: asyncio.Future[bool] | None = None

    async def start(self, config: AssistantConfig) -> None:
        await self._websocket.send_json(
            {"event": "control", "action": "start", "config": config.to_sdk()}
        )

    async def stop(self) -> None:
        await self._websocket.send_json({"event": "control", "action": "stop"})

    async def request(self) -> bool:
        """Ask the browser for microphone access and wait for its answer."""
        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._permission = future
        try:
            await self._websocket.send_json({"event": "permission-request"})
            return await future
        finally:
            self._permission = None

    def resolve_permission(self, granted: bool) -> bool:
        """Deliver the browser's permission answer. False if nobody was asking."""
        if self._permission is None or self._permission.done():
            return False
        self._permission.set_result(granted)
        return True

    async def send_state(self, session: CallSession) -> None:
        await self._send({"event": "state", **session.to_dict()})

    async def send_error(self, message: str) -> None:
        await self._send({"event": "error", "message": message})

    async def send_report(self, payload: dict[str, Any]) -> None:
        await self._send({"event": "report", **payload})

    async def _send(self, message: dict[str, Any]) -> None:
        try:
            await self._websocket.send_json(message)
        except Exception as e:
            logger.error(f"Failed to send {message.get('event')} frame: {e}")


@dataclass
class CallEntry:
    """Entry in the call registry."""

    controller: CallController
    relay: BrowserRelay
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class CallRegistry:
    """Registry of live call connections, one per consultation session."""

    def __init__(self) -> None:
        self._calls: dict[str, CallEntry] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        session_id: str,
        *,
        context: SessionContext,
        relay: BrowserRelay,
        reports: ReportGenerator,
        settings: Settings | None = None,
    ) -> CallController:
        """Register a controller for a newly connected browser.

        Raises:
            DuplicateCallError: Session already has a live connection
            CallCapacityError: System is at maximum capacity
        """
        s = settings or get_settings()
        async with self._lock:
            if session_id in self._calls:
                raise DuplicateCallError(f"Session {session_id} already has an open call.")

            if len(self._calls) >= s.max_concurrent_calls:
                logger.warning(
                    f"Max concurrent calls reached ({s.max_concurrent_calls}), "
                    f"rejecting session {session_id}"
                )
                raise CallCapacityError(
                    f"System at capacity ({s.max_concurrent_calls} concurrent calls)"
                )

            controller = CallController(
                context,
                voice=relay,
                microphone=relay,
                reports=reports,
                settings=s,
            )
            self._calls[session_id] = CallEntry(controller=controller, relay=relay)
            logger.info(
                f"Registered call for session {session_id} "
                f"(active: {len(self._calls)}/{s.max_concurrent_calls})"
            )
            return controller

    async def get(self, session_id: str) -> CallController | None:
        async with self._lock:
            entry = self._calls.get(session_id)
            return entry.controller if entry else None

    async def snapshots(self) -> list[dict[str, Any]]:
        async with self._lock:
            return [entry.controller.snapshot() for entry in self._calls.values()]

    async def remove(self, session_id: str) -> CallEntry | None:
        async with self._lock:
            return self._calls.pop(session_id, None)

    async def close_all(self) -> None:
        """Close all calls (for shutdown)."""
        async with self._lock:
            for session_id, entry in list(self._calls.items()):
                try:
                    await entry.controller.close()
                except Exception as e:
                    logger.error(f"Error closing call for session {session_id}: {e}")
            self._calls.clear()

    @property
    def active_count(self) -> int:
        return len(self._calls)


# Global registry instance
call_registry = CallRegistry()


def get_session_lookup(settings: Settings) -> SessionLookup:
    return SessionLookupClient(settings)


def get_report_generator(settings: Settings) -> ReportGenerator:
    return ReportClient(settings)


async def call_stream_endpoint(websocket: WebSocket, session_id: str) -> None:
    """Handle one browser's call WebSocket for a consultation session."""
    await websocket.accept()
    logger.info(f"Call WebSocket connected for session {session_id}")

    settings = get_settings()

    try:
        context = await get_session_lookup(settings).get(session_id)
    except SessionNotFoundError as e:
        await _reject(websocket, str(e), CLOSE_NOT_FOUND)
        return
    except SessionUnauthorizedError as e:
        await _reject(websocket, str(e), CLOSE_UNAUTHORIZED)
        return
    except SessionLookupError as e:
        logger.error(f"Session lookup failed for {session_id}: {e}")
        await _reject(websocket, str(e), CLOSE_INTERNAL)
        return

    relay = BrowserRelay(websocket)
    try:
        controller = await call_registry.create(
            session_id,
            context=context,
            relay=relay,
            reports=get_report_generator(settings),
            settings=settings,
        )
    except DuplicateCallError as e:
        await _reject(websocket, str(e), CLOSE_CONFLICT)
        return
    except CallCapacityError as e:
        await _reject(websocket, str(e), CLOSE_TRY_AGAIN)
        return

    async def push_state(event: CallEvent, session: CallSession) -> None:
        if not isinstance(event, Ignored):
            await relay.send_state(session)

    runner = asyncio.create_task(controller.run(on_event=push_state))
    starts: set[asyncio.Task[None]] = set()
    stops: set[asyncio.Task[None]] = set()
    await relay.send_state(controller.session)

    try:
        while True:
            try:
                data = await websocket.receive_text()
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received for session {session_id}")
                continue

            if not isinstance(message, dict):
                continue

            event = message.get("event", "")

            if event == "sdk":
                controller.submit(str(message.get("name", "")), message.get("payload"))

            elif event == "permission":
                if not relay.resolve_permission(bool(message.get("granted"))):
                    logger.debug(f"Unsolicited permission answer for session {session_id}")

            elif event == "start":
                _spawn(starts, _handle_start(controller, relay))

            elif event == "stop":
                _spawn(stops, _handle_stop(controller, relay))

            else:
                logger.debug(f"Unknown frame {event!r} for session {session_id}")

    except WebSocketDisconnect:
        logger.info(f"Call WebSocket disconnected for session {session_id}")

    except Exception as e:
        logger.error(f"Call WebSocket error for session {session_id}: {e}")

    finally:
        await _cleanup_call(session_id, controller, runner, starts, stops)


async def _handle_start(controller: CallController, relay: BrowserRelay) -> None:
    try:
        await controller.start()
    except CallError as e:
        await relay.send_error(e.message)
    await relay.send_state(controller.session)


async def _handle_stop(controller: CallController, relay: BrowserRelay) -> None:
    try:
        result = await controller.stop()
    except CallError as e:
        await relay.send_error(e.message)
        return
    await relay.send_report(result.to_dict())


def _spawn(tasks: set[asyncio.Task[None]], coro: Any) -> None:
    task = asyncio.create_task(coro)
    tasks.add(task)
    task.add_done_callback(tasks.discard)


async def _reject(websocket: WebSocket, message: str, code: int) -> None:
    logger.warning(f"Rejecting call WebSocket ({code}): {message}")
    with contextlib.suppress(Exception):
        await websocket.send_json({"event": "error", "message": message})
        await websocket.close(code=code)


async def _cleanup_call(
    session_id: str,
    controller: CallController,
    runner: asyncio.Task[None],
    starts: set[asyncio.Task[None]],
    stops: set[asyncio.Task[None]],
) -> None:
    """Close the controller, let report handoffs finish and drop the call."""
    logger.info(f"Cleaning up call for session {session_id}")

    # A start may be parked on a permission answer that will never come
    for task in list(starts):
        task.cancel()
    if starts:
        await asyncio.gather(*starts, return_exceptions=True)

    await call_registry.remove(session_id)

    try:
        await controller.close()
    except Exception as e:
        logger.error(f"Error closing call for session {session_id}: {e}")

    # In-flight report requests are allowed to complete
    if stops:
        await asyncio.gather(*stops, return_exceptions=True)

    try:
        await asyncio.wait_for(runner, timeout=RUNNER_SHUTDOWN_TIMEOUT)
    except TimeoutError:
        runner.cancel()
        logger.warning(f"Event runner for session {session_id} did not stop in time")
