"""Voice SDK control (the SDK itself runs in the browser)."""

from medvoice.services.voice.assistant import build_assistant_config
from medvoice.services.voice.protocol import (
    AssistantConfig,
    MicrophoneGate,
    ModelConfig,
    ModelMessage,
    TranscriberConfig,
    VoiceClient,
    VoiceConfig,
)

__all__ = [
    "AssistantConfig",
    "MicrophoneGate",
    "ModelConfig",
    "ModelMessage",
    "TranscriberConfig",
    "VoiceClient",
    "VoiceConfig",
    "build_assistant_config",
]
