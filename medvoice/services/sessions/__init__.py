"""Session-lookup collaborator."""

from medvoice.services.sessions.client import SessionLookupClient
from medvoice.services.sessions.exceptions import (
    SessionLookupError,
    SessionNotFoundError,
    SessionUnauthorizedError,
)
from medvoice.services.sessions.protocol import SessionLookup

__all__ = [
    "SessionLookup",
    "SessionLookupClient",
    "SessionLookupError",
    "SessionNotFoundError",
    "SessionUnauthorizedError",
]
