"""Report-generation collaborator protocol and request type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from medvoice.core.context import SessionContext
    from medvoice.core.transcript import Utterance


@dataclass(frozen=True, slots=True)
class ReportRequest:
    """Finished transcript plus session context, handed off once per call."""

    messages: tuple[Utterance, ...]
    session_detail: SessionContext
    session_id: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "messages": [u.to_dict() for u in self.messages],
            "sessionDetail": self.session_detail.to_wire(),
            "sessionID": self.session_id,
        }


class ReportGenerator(Protocol):
    """Turns a finished consultation into a structured report."""

    async def generate(self, request: ReportRequest) -> dict[str, Any]:
        """Return the report object verbatim; raise ReportServiceError on failure."""
        ...
