"""Read-only views of live calls."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from medvoice.api.websocket.call_stream import call_registry

router = APIRouter()


class UtteranceResponse(BaseModel):
    id: str
    speaker: str
    text: str
    timestamp: str
    finality: str


class CallSnapshotResponse(BaseModel):
    """State of one call as the browser would render it."""

    session_id: str
    call_id: str
    state: str
    current_speaker: str
    connected: bool
    duration_seconds: int
    duration: str
    transcript: list[UtteranceResponse]
    error: str | None = None


@router.get("/calls", response_model=list[CallSnapshotResponse])
async def list_calls() -> list[dict[str, Any]]:
    """All calls with an open browser connection."""
    return await call_registry.snapshots()


@router.get("/calls/{session_id}", response_model=CallSnapshotResponse)
async def get_call(session_id: str) -> dict[str, Any]:
    """Current state of the call for one consultation session."""
    controller = await call_registry.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="No open call for this session")
    return controller.snapshot()
