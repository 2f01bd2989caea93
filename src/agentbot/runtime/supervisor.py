"""
ConnectionSupervisor - keeps the event stream alive.

Two tasks:
- receive loop: iterates the handle captured when it was armed and
  hands each event to on_event
- tick loop: every reconnect interval, reconnects if the link is down and
  re-arms the receive loop

Only the first connection is fatal. Afterwards reconnects are retried
forever.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from websockets.exceptions import ConnectionClosed

from agentbot.client.streaming import WebSocketClient
from agentbot.platform.event import PlatformEvent
from agentbot.platform.link import MattermostLink

logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """
    Example:
        supervisor = ConnectionSupervisor(link, reconnect_interval_seconds=10)
        supervisor.on_event = handle_event
        await supervisor.start()
        ...
        await supervisor.stop()
    """

    def __init__(self, link: MattermostLink, reconnect_interval_seconds: float = 10.0):
        self.link = link
        self.reconnect_interval_seconds = reconnect_interval_seconds

        # Callback (set by Agent)
        self.on_event: Callable[[PlatformEvent], Awaitable[None]] | None = None

        self._receive_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[None] | None = None

    @property
    def is_healthy(self) -> bool:
        return self.link.is_connected

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    async def start(self) -> None:
        """
        Connect and start supervising.

        Raises:
            Whatever the first connection attempt raises
        """
        await self.link.connect()
        self._arm()
        self._tick_task = asyncio.create_task(self._tick_loop(), name="supervisor-tick")
        logger.info("Connection supervisor started")

    async def stop(self) -> None:
        for task in (self._tick_task, self._receive_task):
            if task is None:
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tick_task = None
        self._receive_task = None

        await self.link.disconnect()
        logger.info("Connection supervisor stopped")

    async def tick(self) -> None:
        """One supervision step: reconnect if needed, then re-arm."""
        if not self.link.is_connected:
            logger.info("WebSocket disconnected, attempting to reconnect")
            try:
                await self.link.connect()
            except Exception as e:
                logger.error(f"Reconnect failed: {e}")
                return
            logger.info("Reconnected")

        if self._receive_task is None or self._receive_task.done():
            self._arm()

    def _arm(self) -> None:
        handle = self.link.handle
        if handle is None:
            return
        self._receive_task = asyncio.create_task(
            self._receive(handle), name="supervisor-receive"
        )

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.reconnect_interval_seconds)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Supervisor tick failed: {e}", exc_info=True)

    async def _receive(self, handle: WebSocketClient) -> None:
        """Drain one handle. Clears it from the link when it stops delivering."""
        try:
            async for event in self.link.events(handle):
                await self._dispatch(event)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket closed: {e}")
        except Exception as e:
            logger.error(f"Receive loop failed: {e}", exc_info=True)
        else:
            logger.warning("WebSocket event stream ended")

        await self.link.clear(handle)

    async def _dispatch(self, event: PlatformEvent) -> None:
        if self.on_event is None:
            return
        try:
            await self.on_event(event)
        except Exception as e:
            logger.error(f"Error handling {event.type} event: {e}", exc_info=True)
