"""Report-generation collaborator."""

from medvoice.services.reports.client import ReportClient
from medvoice.services.reports.exceptions import (
    ReportConnectionError,
    ReportResponseError,
    ReportServiceError,
)
from medvoice.services.reports.protocol import ReportGenerator, ReportRequest

__all__ = [
    "ReportClient",
    "ReportConnectionError",
    "ReportGenerator",
    "ReportRequest",
    "ReportResponseError",
    "ReportServiceError",
]
