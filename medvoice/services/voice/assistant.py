"""Build the SDK start configuration from a consultation session."""

from __future__ import annotations

from medvoice.config import Settings, get_settings
from medvoice.core.context import SessionContext
from medvoice.services.voice.protocol import (
    AssistantConfig,
    ModelConfig,
    ModelMessage,
    TranscriberConfig,
    VoiceConfig,
)

NOTES_PREFIX = "User's initial notes: "


def build_assistant_config(
    context: SessionContext,
    settings: Settings | None = None,
) -> AssistantConfig:
    """Assemble the assistant the SDK should dial.

    The agent prompt becomes the system message; the patient's intake notes,
    when present, follow as a user message so the agent starts informed.
    """
    s = settings or get_settings()

    messages = [ModelMessage(role="system", content=context.agent_prompt)]
    if context.notes and context.notes.strip():
        messages.append(ModelMessage(role="user", content=f"{NOTES_PREFIX}{context.notes}"))

    return AssistantConfig(
        name=context.assistant_name or s.assistant_default_name,
        first_message=s.assistant_first_message,
        transcriber=TranscriberConfig(
            provider=s.transcriber_provider,
            language=s.transcriber_language,
        ),
        voice=VoiceConfig(
            provider=s.voice_provider,
            voice_id=context.resolved_voice_id,
        ),
        model=ModelConfig(
            provider=s.model_provider,
            model=s.model_name,
            messages=messages,
        ),
    )
