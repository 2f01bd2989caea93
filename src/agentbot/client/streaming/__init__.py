"""WebSocket client for the chat platform event stream."""

from .client import (
    PostedEventData,
    WebSocketClient,
    WebSocketEnvelope,
    websocket_url,
)

__all__ = [
    "PostedEventData",
    "WebSocketClient",
    "WebSocketEnvelope",
    "websocket_url",
]
