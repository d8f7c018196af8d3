"""Session-lookup collaborator protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from medvoice.core.context import SessionContext


class SessionLookup(Protocol):
    """Resolves a session identifier into its consultation context."""

    async def get(self, session_id: str) -> SessionContext:
        """Return the session; raise SessionLookupError subclasses otherwise."""
        ...
