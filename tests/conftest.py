"""Shared pytest fixtures for MedVoice tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from medvoice.config import Settings
from medvoice.core.context import SessionContext
from medvoice.core.lifecycle import CallController
from medvoice.services.sessions.exceptions import SessionNotFoundError


def build_settings(**overrides) -> Settings:
    """Create a Settings object with safe test defaults."""
    base = {
        "report_api_url": "http://reports.test/api/users/medical-report",
        "session_api_url": "http://sessions.test/api/users/session-chat",
        "collaborator_api_token": "test-collaborator-token",
        "collaborator_timeout_seconds": 5,
        "timer_interval_seconds": 0.01,
        "stop_timeout_seconds": 0.2,
        "permission_timeout_seconds": 0.2,
        "max_concurrent_calls": 2,
    }
    base.update(overrides)
    return Settings(**base)


def build_context(**overrides: Any) -> SessionContext:
    """Create a SessionContext shaped like the session endpoint's response."""
    base: dict[str, Any] = {
        "sessionID": "sess-001",
        "SelectedDoctor": {
            "id": 3,
            "specialist": "General Physician",
            "description": "Helps with everyday health concerns",
            "image": "/doctor3.png",
            "agentPrompt": "You are a friendly general physician.",
            "voiceId": "will",
        },
        "notes": "Headache for two days",
        "voiceId": "will",
        "agentPrompt": "You are a friendly general physician.",
        "createdOn": "2026-10-19T09:00:00Z",
        "createdBy": "patient@example.com",
    }
    base.update(overrides)
    return SessionContext.model_validate(base)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a factory to build Settings with overrides."""
    return build_settings


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default Settings fixture."""
    return settings_factory()


@pytest.fixture
def context_factory() -> Callable[..., SessionContext]:
    """Return a factory to build SessionContext with overrides."""
    return build_context


@pytest.fixture
def session_context(context_factory: Callable[..., SessionContext]) -> SessionContext:
    """Fully configured consultation session."""
    return context_factory()


# =============================================================================
# Collaborator Doubles
# =============================================================================


@pytest.fixture
def voice() -> AsyncMock:
    """Voice SDK control double; start/stop succeed and do nothing."""
    return AsyncMock()


@pytest.fixture
def microphone() -> AsyncMock:
    """Microphone gate double that grants access."""
    gate = AsyncMock()
    gate.request.return_value = True
    return gate


@pytest.fixture
def reports() -> AsyncMock:
    """Report generator double returning a canned report."""
    generator = AsyncMock()
    generator.generate.return_value = {
        "sessionId": "sess-001",
        "chiefComplaint": "Headache",
        "summary": "Patient reports a two-day headache.",
    }
    return generator


@pytest.fixture
def controller_factory(
    session_context: SessionContext,
    voice: AsyncMock,
    microphone: AsyncMock,
    reports: AsyncMock,
    settings: Settings,
) -> Callable[..., CallController]:
    """Return a factory for controllers wired to the collaborator doubles."""

    def factory(context: SessionContext | None = session_context, **overrides) -> CallController:
        return CallController(
            context,
            voice=overrides.get("voice", voice),
            microphone=overrides.get("microphone", microphone),
            reports=overrides.get("reports", reports),
            settings=overrides.get("settings", settings),
        )

    return factory


@pytest.fixture
def controller(controller_factory: Callable[..., CallController]) -> CallController:
    """Controller for the default session."""
    return controller_factory()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


class StubSessionLookup:
    """In-memory session lookup keyed by session id."""

    def __init__(self, sessions: dict[str, SessionContext]) -> None:
        self.sessions = sessions

    async def get(self, session_id: str) -> SessionContext:
        if session_id not in self.sessions:
            raise SessionNotFoundError(session_id)
        return self.sessions[session_id]


@pytest.fixture
def session_lookup() -> StubSessionLookup:
    """Lookup that knows a configured session and one missing its voice id."""
    return StubSessionLookup(
        {
            "sess-001": build_context(),
            "sess-002": build_context(sessionID="sess-002"),
            "sess-novoice": build_context(
                sessionID="sess-novoice",
                voiceId="",
                SelectedDoctor={"specialist": "Dermatologist", "voiceId": ""},
            ),
        }
    )


@pytest.fixture
def test_client(settings_factory, session_lookup, reports, monkeypatch) -> Generator:
    """FastAPI TestClient with patched settings and collaborator doubles."""
    from fastapi.testclient import TestClient

    from medvoice.config import get_settings
    from medvoice.main import create_app

    test_settings = settings_factory()

    # Patch get_settings in every module that imported it
    monkeypatch.setattr("medvoice.config.get_settings", lambda: test_settings)
    monkeypatch.setattr("medvoice.main.get_settings", lambda: test_settings)
    monkeypatch.setattr(
        "medvoice.api.websocket.call_stream.get_settings", lambda: test_settings
    )
    monkeypatch.setattr(
        "medvoice.api.websocket.call_stream.get_session_lookup",
        lambda settings: session_lookup,
    )
    monkeypatch.setattr(
        "medvoice.api.websocket.call_stream.get_report_generator",
        lambda settings: reports,
    )

    app = create_app()
    # Routes resolve settings through Depends(get_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings

    with TestClient(app) as client:
        yield client
