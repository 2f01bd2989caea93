"""Liveness endpoint: GET /health reports the websocket state."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

logger = logging.getLogger(__name__)

HEALTHY_TEXT = "OK"
DISCONNECTED_TEXT = "WebSocket Disconnected"


def build_health_app(is_healthy: Callable[[], bool]) -> Starlette:
    """
    Build the health app.

    Always answers 200; the body says whether the websocket is up.
    """

    async def health(request: Request) -> PlainTextResponse:
        return PlainTextResponse(HEALTHY_TEXT if is_healthy() else DISCONNECTED_TEXT)

    return Starlette(routes=[Route("/health", health, methods=["GET"])])


class HealthServer:
    """uvicorn server for the health app, run as a background task."""

    def __init__(
        self,
        is_healthy: Callable[[], bool],
        port: int = 8081,
        host: str = "0.0.0.0",
    ):
        self.port = port
        self.host = host
        self.app = build_health_app(is_healthy)
        self._server_task: asyncio.Task[Any] | None = None

    async def start(self) -> None:
        import uvicorn

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)

        logger.info(f"Health check server starting on port {self.port}")
        self._server_task = asyncio.create_task(server.serve(), name="health-server")

    async def stop(self) -> None:
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
            self._server_task = None
            logger.info("Health check server stopped")
