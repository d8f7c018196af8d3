"""Custom exceptions for the session-lookup collaborator."""


class SessionLookupError(Exception):
    """Base exception for session lookup errors."""

    pass


class SessionNotFoundError(SessionLookupError):
    """Raised when no session exists for the identifier."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f'Session with ID "{session_id}" not found. '
            "It might have expired or never existed."
        )
        self.session_id = session_id


class SessionUnauthorizedError(SessionLookupError):
    """Raised when the caller may not access the session."""

    pass
