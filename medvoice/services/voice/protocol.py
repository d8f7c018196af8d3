"""Voice SDK control protocol and assistant start configuration."""

from __future__ import annotations

from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field


class TranscriberConfig(BaseModel):
    provider: str
    language: str


class VoiceConfig(BaseModel):
    provider: str
    voice_id: str = Field(serialization_alias="voiceId")


class ModelMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ModelConfig(BaseModel):
    provider: str
    model: str
    messages: list[ModelMessage]


class AssistantConfig(BaseModel):
    """Payload for the SDK's ``start(config)`` call."""

    name: str
    first_message: str = Field(serialization_alias="firstMessage")
    transcriber: TranscriberConfig
    voice: VoiceConfig
    model: ModelConfig

    def to_sdk(self) -> dict[str, Any]:
        """Serialize with the SDK's camelCase field names."""
        return self.model_dump(by_alias=True)


class VoiceClient(Protocol):
    """Outbound control calls to the voice SDK."""

    async def start(self, config: AssistantConfig) -> None:
        """Ask the SDK to open a call with the given assistant."""
        ...

    async def stop(self) -> None:
        """Ask the SDK to terminate the current call."""
        ...


class MicrophoneGate(Protocol):
    """User-controlled microphone capture permission."""

    async def request(self) -> bool:
        """Ask for microphone access; True when granted."""
        ...
