"""Custom exceptions for the call lifecycle."""


class CallError(Exception):
    """Base exception for call lifecycle errors.

    ``message`` is safe to show to the user.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CallPreconditionError(CallError):
    """Raised when session configuration is missing or invalid."""

    pass


class MicrophonePermissionError(CallError):
    """Raised when the user denies (or never answers) microphone access."""

    def __init__(
        self,
        message: str = "Microphone access denied. Please allow microphone access to start the call.",
    ) -> None:
        super().__init__(message)


class CallBusyError(CallError):
    """Raised when a start/stop request arrives while another is pending."""

    pass


class CallStateError(CallError):
    """Raised when an operation is not valid in the current call state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation} while call is {state.lower()}.")
        self.operation = operation
        self.state = state


class VoiceSDKError(CallError):
    """Raised when an outbound control call to the voice SDK fails."""

    pass
