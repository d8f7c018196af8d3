"""WebSocket handlers for browser-relayed calls.

This module provides the call WebSocket endpoint:
- call_stream_endpoint: Main WebSocket handler
- call_registry: Global call registry
"""

from medvoice.api.websocket.call_stream import (
    BrowserRelay,
    CallEntry,
    CallRegistry,
    call_registry,
    call_stream_endpoint,
)

__all__ = [
    "call_stream_endpoint",
    "call_registry",
    "CallRegistry",
    "CallEntry",
    "BrowserRelay",
]
