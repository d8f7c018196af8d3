"""Custom exceptions for the report-generation collaborator."""


class ReportServiceError(Exception):
    """Base exception for report generation errors."""

    pass


class ReportConnectionError(ReportServiceError):
    """Raised when the report endpoint cannot be reached."""

    pass


class ReportResponseError(ReportServiceError):
    """Raised when the report endpoint answers with an error payload."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
