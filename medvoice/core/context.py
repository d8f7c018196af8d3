"""Session context supplied by the session-lookup collaborator.

Read-only to the call core: loaded once before the call connects and
forwarded unchanged to the report collaborator.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DoctorAgent(BaseModel):
    """AI doctor persona selected for the consultation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int | None = None
    specialist: str = ""
    description: str = ""
    image: str = ""
    agent_prompt: str = Field(default="", alias="agentPrompt")
    voice_id: str = Field(default="", alias="voiceId")


class SessionContext(BaseModel):
    """Consultation session as stored by the surrounding application."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    session_id: str = Field(alias="sessionID")
    selected_doctor: DoctorAgent = Field(default_factory=DoctorAgent, alias="SelectedDoctor")
    notes: str | None = None
    voice_id: str = Field(default="", alias="voiceId")
    agent_prompt: str = Field(default="", alias="agentPrompt")
    created_on: str | None = Field(default=None, alias="createdOn")
    created_by: str | None = Field(default=None, alias="createdBy")

    @property
    def resolved_voice_id(self) -> str:
        """Doctor's current voice id, falling back to the one stored on the session."""
        return (self.selected_doctor.voice_id or self.voice_id or "").strip()

    @property
    def assistant_name(self) -> str | None:
        return self.selected_doctor.specialist.strip() or None

    def missing_fields(self) -> list[str]:
        """Fields that must be non-empty before a call may connect."""
        missing = []
        if not self.resolved_voice_id:
            missing.append("voice_id")
        if not self.agent_prompt.strip():
            missing.append("agent_prompt")
        return missing

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the collaborator's field names."""
        return self.model_dump(by_alias=True, mode="json")
