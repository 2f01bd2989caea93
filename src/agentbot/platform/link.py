"""
MattermostLink - Live link to the chat platform.

Owns the websocket handle and exposes the REST client directly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from agentbot.client.rest import MattermostRestClient
from agentbot.client.streaming import WebSocketClient

from .event import PlatformEvent, parse_event

logger = logging.getLogger(__name__)


class MattermostLink:
    """
    Live link to the chat platform.

    Handles the websocket connection. REST client exposed directly via
    self.rest for API calls.

    The websocket handle is swapped under a lock. Readers capture the
    handle once (see `handle`) and iterate it via `events(handle)`, so a
    reconnect never changes the socket underneath a running receive loop.

    Example:
        link = MattermostLink(server_url="...", access_token="...", bot_user_id="...")
        await link.connect()

        async for event in link.events(link.handle):
            match event:
                case PostedEvent(payload=data):
                    print(f"Post: {data.post}")
    """

    def __init__(
        self,
        server_url: str,
        access_token: str,
        bot_user_id: str,
        rest: MattermostRestClient | None = None,
    ):
        self.server_url = server_url
        self.access_token = access_token
        self.bot_user_id = bot_user_id

        self.rest = rest or MattermostRestClient(
            server_url=server_url,
            access_token=access_token,
            bot_user_id=bot_user_id,
        )

        self._ws: WebSocketClient | None = None
        self._lock = asyncio.Lock()

    @property
    def handle(self) -> WebSocketClient | None:
        return self._ws

    @property
    def is_connected(self) -> bool:
        ws = self._ws
        return ws is not None and ws.is_open

    # --- Connection lifecycle ---

    async def connect(self) -> None:
        """
        Open a new websocket and swap it in.

        Raises whatever the websocket library raises if the connection
        cannot be established; the previous handle is left cleared.
        """
        async with self._lock:
            if self.is_connected:
                logger.warning("Already connected")
                return

            stale, self._ws = self._ws, None
            if stale is not None:
                await self._close_quietly(stale)

            ws = WebSocketClient(self.server_url, self.access_token)
            await ws.__aenter__()
            self._ws = ws
            logger.info("Connected to platform")

    async def disconnect(self) -> None:
        """Close the websocket."""
        async with self._lock:
            ws, self._ws = self._ws, None
        if ws is None:
            return
        await self._close_quietly(ws)
        logger.info("Disconnected from platform")

    async def clear(self, handle: WebSocketClient) -> None:
        """
        Drop a handle that stopped delivering events.

        No-op if a newer handle has already been swapped in.
        """
        async with self._lock:
            if self._ws is not handle:
                return
            self._ws = None
        await self._close_quietly(handle)
        logger.info("Connection handle cleared")

    async def aclose(self) -> None:
        """Disconnect and release the REST client."""
        await self.disconnect()
        await self.rest.aclose()

    # --- Events ---

    async def events(self, handle: WebSocketClient) -> AsyncIterator[PlatformEvent]:
        """Yield typed events from a captured handle until it closes."""
        async for raw in handle.events():
            event = parse_event(raw)
            if event is not None:
                yield event

    @staticmethod
    async def _close_quietly(ws: WebSocketClient) -> None:
        try:
            await ws.__aexit__(None, None, None)
        except Exception as e:
            logger.debug(f"Error closing websocket: {e}")
