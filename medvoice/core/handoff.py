"""One-time handoff of the finished transcript to report generation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from medvoice.core.context import SessionContext
from medvoice.core.transcript import Utterance
from medvoice.logging_config import get_logger
from medvoice.observability.metrics import record_handoff_metrics
from medvoice.services.reports.exceptions import ReportServiceError
from medvoice.services.reports.protocol import ReportGenerator, ReportRequest

logger: Any = get_logger(__name__)

CANNOT_GENERATE_MESSAGE = "Cannot generate report due to missing data."
ABORTED_MESSAGE = "The call ended with an error, so no report was generated."


class HandoffStatus(str, Enum):
    GENERATED = "generated"
    CANNOT_GENERATE = "cannot_generate"  # Empty transcript or no session context
    FAILED = "failed"  # Collaborator raised
    ABORTED = "aborted"  # Call left via the error path


@dataclass(frozen=True, slots=True)
class HandoffResult:
    """Outcome of a handoff. ``report`` is the collaborator's object, verbatim."""

    status: HandoffStatus
    report: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == HandoffStatus.GENERATED

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "report": self.report, "error": self.error}


class ReportDispatcher:
    """Calls the report collaborator at most once per call.

    Later calls (including concurrent ones) get the first result back without
    calling out again. There is no retry.
    """

    def __init__(self, generator: ReportGenerator) -> None:
        self._generator = generator
        self._result: HandoffResult | None = None
        self._lock = asyncio.Lock()

    @property
    def result(self) -> HandoffResult | None:
        return self._result

    @property
    def dispatched(self) -> bool:
        return self._result is not None

    async def dispatch(
        self,
        transcript: Sequence[Utterance],
        context: SessionContext | None,
        session_id: str | None,
    ) -> HandoffResult:
        """Forward the finished call to the report collaborator.

        Args:
            transcript: Final utterance log
            context: Session context the call ran with
            session_id: Consultation session identifier

        Returns:
            The handoff result; never raises for collaborator failures.
        """
        async with self._lock:
            if self._result is not None:
                logger.warning(f"Report already dispatched for session {session_id}")
                return self._result

            if not transcript or context is None or not session_id:
                logger.error(
                    "Cannot generate report: missing "
                    f"{'transcript' if not transcript else 'session context'}"
                )
                return self._finish(
                    HandoffResult(status=HandoffStatus.CANNOT_GENERATE, error=CANNOT_GENERATE_MESSAGE)
                )

            request = ReportRequest(
                messages=tuple(transcript),
                session_detail=context,
                session_id=session_id,
            )
            start_time = time.perf_counter()
            try:
                report = await self._generator.generate(request)
            except ReportServiceError as e:
                logger.error(f"Report generation failed for session {session_id}: {e}")
                result = HandoffResult(
                    status=HandoffStatus.FAILED,
                    error=f"Failed to generate report: {e}",
                )
            except Exception as e:
                logger.exception(f"Unexpected report generation error for session {session_id}")
                result = HandoffResult(
                    status=HandoffStatus.FAILED,
                    error=f"Failed to generate report: {e}",
                )
            else:
                result = HandoffResult(status=HandoffStatus.GENERATED, report=report)

            return self._finish(result, latency=time.perf_counter() - start_time)

    def abort(self) -> HandoffResult:
        """Close the handoff without calling out (error-path exit)."""
        if self._result is None:
            self._finish(HandoffResult(status=HandoffStatus.ABORTED, error=ABORTED_MESSAGE))
        return self._result

    def _finish(self, result: HandoffResult, latency: float | None = None) -> HandoffResult:
        self._result = result
        record_handoff_metrics(result.status.value, latency)
        return result
