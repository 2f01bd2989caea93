"""
Async REST client for the Mattermost API v4.

Thin pass-through implementing the ChatPlatform protocol.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from agentbot.core.types import ChatUser, OutgoingMessage, ThreadPost

from .models import Post, PostList, User

logger = logging.getLogger(__name__)


class PlatformError(Exception):
    """A chat platform call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(PlatformError):
    """The requested post or user does not exist or is not accessible."""


class MattermostRestClient:
    """
    REST client for the chat platform.

    Example:
        rest = MattermostRestClient("https://chat.example.com", token, bot_user_id)
        post_id = await rest.post(OutgoingMessage(channel_id="c1", text="hi"))
        await rest.aclose()
    """

    def __init__(
        self,
        server_url: str,
        access_token: str,
        bot_user_id: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.bot_user_id = bot_user_id
        self._http = http_client or httpx.AsyncClient(
            base_url=f"{self.server_url}/api/v4",
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> Any:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise PlatformError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"{path} not found", status_code=404)
        if response.status_code >= 400:
            raise PlatformError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        return response.json()

    # --- ChatPlatform protocol ---

    async def post(self, message: OutgoingMessage) -> str:
        body = {
            "channel_id": message.channel_id,
            "message": message.text,
            "root_id": message.thread_id or "",
        }
        data = await self._request("POST", "/posts", json=body)
        return (data or {}).get("id", "")

    async def update(self, post_id: str, text: str) -> None:
        await self._request("PUT", f"/posts/{post_id}/patch", json={"message": text})

    async def send_typing(self, channel_id: str, thread_id: str | None = None) -> None:
        await self._request(
            "POST",
            f"/users/{self.bot_user_id}/typing",
            json={"channel_id": channel_id, "parent_id": thread_id or ""},
        )

    async def get_message(self, post_id: str) -> ThreadPost:
        data = await self._request("GET", f"/posts/{post_id}")
        try:
            return Post.model_validate(data).to_thread_post()
        except ValidationError as e:
            raise PlatformError(f"Malformed post {post_id}: {e}") from e

    async def get_thread_messages(self, root_id: str) -> list[ThreadPost]:
        data = await self._request("GET", f"/posts/{root_id}/thread")
        try:
            thread = PostList.model_validate(data or {})
        except ValidationError as e:
            raise PlatformError(f"Malformed thread {root_id}: {e}") from e
        posts = [p.to_thread_post() for p in thread.in_fetch_order()]
        logger.debug(f"Fetched {len(posts)} posts for thread {root_id}")
        return posts

    async def get_user(self, user_id: str) -> ChatUser:
        data = await self._request("GET", f"/users/{user_id}")
        try:
            return User.model_validate(data).to_chat_user()
        except ValidationError as e:
            raise PlatformError(f"Malformed user {user_id}: {e}") from e
