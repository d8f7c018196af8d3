"""Health check endpoints.

Provides:
- Basic health check (GET /health)
- Detailed health check with collaborator configuration (GET /health/detailed)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from medvoice import __version__
from medvoice.api.websocket.call_stream import call_registry
from medvoice.config import Settings, get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response."""

    status: str
    checks: dict[str, str]
    active_calls: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        Simple status indicating the API is running.
    """
    return HealthResponse(status="healthy")


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    settings: Settings = Depends(get_settings),
) -> DetailedHealthResponse:
    """Detailed health check including collaborator configuration.

    Collaborators are not called; only their configuration is checked.
    """
    checks = {
        "report_api": "configured" if settings.report_api_url else "missing",
        "session_api": "configured" if settings.session_api_url else "missing",
        "collaborator_token": (
            "configured" if settings.collaborator_api_token is not None else "missing"
        ),
        "capacity": (
            "ok" if call_registry.active_count < settings.max_concurrent_calls else "full"
        ),
    }

    critical = ("report_api", "session_api")
    status = "healthy" if all(checks[name] == "configured" for name in critical) else "degraded"

    return DetailedHealthResponse(
        status=status,
        checks=checks,
        active_calls=call_registry.active_count,
        version=__version__,
    )
