"""
Pytest fixtures for agentbot tests.

Provides fakes and factories for fast testing without real API calls.

Key fixture pattern:
- fake_chat: FakeChatPlatform recording every write
- identity / threads: agent state shared by the runtime components
- make_message / posted_frame: factories for inbound messages and frames
"""

import json
from typing import Any

import pytest

from agentbot.core.types import IncomingMessage
from agentbot.runtime.context import ThreadContextBuilder
from agentbot.runtime.state import ActiveThreadSet, BotIdentity
from agentbot.testing import FakeChatPlatform

BOT_USER_ID = "bot-user-1"


@pytest.fixture
def identity() -> BotIdentity:
    return BotIdentity(
        user_id=BOT_USER_ID, username="agent-bot", display_name="Assistant"
    )


@pytest.fixture
def fake_chat() -> FakeChatPlatform:
    chat = FakeChatPlatform(bot_user_id=BOT_USER_ID)
    chat.add_user("u-alice", "alice")
    chat.add_user("u-bob", "bob")
    return chat


@pytest.fixture
def threads() -> ActiveThreadSet:
    return ActiveThreadSet()


@pytest.fixture
def context_builder(fake_chat, identity) -> ThreadContextBuilder:
    return ThreadContextBuilder(fake_chat, identity)


@pytest.fixture
def make_message():
    """Factory for IncomingMessage with sensible defaults."""

    def _make(
        text: str = "hello there",
        post_id: str = "p-1",
        user_id: str = "u-alice",
        channel_id: str = "c-1",
        thread_id: str = "",
        is_dm: bool = False,
    ) -> IncomingMessage:
        return IncomingMessage(
            post_id=post_id,
            user_id=user_id,
            channel_id=channel_id,
            thread_id=thread_id,
            text=text,
            is_dm=is_dm,
        )

    return _make


@pytest.fixture
def posted_frame():
    """Factory for raw `posted` websocket frames as the server sends them."""

    def _make(
        message: str = "hello",
        post_id: str = "p-1",
        user_id: str = "u-alice",
        channel_id: str = "c-1",
        root_id: str = "",
        channel_type: str = "O",
    ) -> dict[str, Any]:
        post = {
            "id": post_id,
            "user_id": user_id,
            "channel_id": channel_id,
            "root_id": root_id,
            "message": message,
            "create_at": 1700000000000,
        }
        return {
            "event": "posted",
            "data": {
                "post": json.dumps(post),
                "channel_type": channel_type,
                "channel_name": "town-square",
                "sender_name": "@alice",
            },
            "broadcast": {"channel_id": channel_id},
            "seq": 3,
        }

    return _make
