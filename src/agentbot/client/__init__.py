"""Chat platform clients (REST + WebSocket)."""

from .rest import MattermostRestClient, NotFoundError, PlatformError
from .streaming import WebSocketClient

__all__ = ["MattermostRestClient", "NotFoundError", "PlatformError", "WebSocketClient"]
