import json
import logging
from typing import Any, AsyncIterator, Optional

from pydantic import BaseModel, ConfigDict
from websockets.asyncio.client import ClientConnection, connect
from websockets.protocol import State

from agentbot.client.rest.models import Post

logger = logging.getLogger(__name__)


# WebSocket event payloads (based on actual server frames)
# Using Pydantic for runtime validation


class PostedEventData(BaseModel):
    """`data` object of a `posted` event. The post itself is a JSON string."""

    model_config = ConfigDict(extra="allow")

    post: str
    channel_type: str = ""
    channel_name: Optional[str] = None
    sender_name: Optional[str] = None

    def parse_post(self) -> Post:
        """Decode the embedded post. Raises ValueError if it is malformed."""
        return Post.model_validate_json(self.post)


class WebSocketEnvelope(BaseModel):
    """Top-level websocket frame."""

    model_config = ConfigDict(extra="allow")

    event: Optional[str] = None
    data: dict[str, Any] = {}
    broadcast: dict[str, Any] = {}
    seq: Optional[int] = None


def websocket_url(server_url: str) -> str:
    """Derive the websocket endpoint from the server's http(s) URL."""
    url = server_url.rstrip("/")
    if url.startswith("https://"):
        url = "wss://" + url[len("https://") :]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://") :]
    return f"{url}/api/v4/websocket"


class WebSocketClient:
    def __init__(self, server_url: str, access_token: str):
        self.ws_url = websocket_url(server_url)
        self.access_token = access_token
        self._ws: ClientConnection | None = None
        self._seq = 0

    @property
    def is_open(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def __aenter__(self):
        """Open the socket and authenticate"""
        logger.info(f"[WebSocket] Connecting to {self.ws_url}")
        self._ws = await connect(
            self.ws_url,
            additional_headers={"Authorization": f"Bearer {self.access_token}"},
        )
        await self._send(
            "authentication_challenge", {"token": self.access_token}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the socket"""
        if self._ws:
            await self._ws.close()
            self._ws = None

    async def _send(self, action: str, data: dict[str, Any]) -> None:
        if not self._ws:
            raise RuntimeError("WebSocket not connected")
        self._seq += 1
        await self._ws.send(json.dumps({"seq": self._seq, "action": action, "data": data}))

    async def events(self) -> AsyncIterator[dict[str, Any]]:
        """
        Yield decoded frames until the socket closes.

        Non-JSON frames are skipped. A normal close ends the iteration; an
        abnormal close raises websockets.ConnectionClosedError.
        """
        if not self._ws:
            raise RuntimeError("WebSocket not connected")

        async for frame in self._ws:
            try:
                data = json.loads(frame)
            except (TypeError, ValueError):
                logger.debug("[WebSocket] Skipping non-JSON frame")
                continue
            if isinstance(data, dict):
                yield data
