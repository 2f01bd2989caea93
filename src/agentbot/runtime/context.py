"""
ThreadContextBuilder - speaker-labelled transcript of a thread.

Built fresh for every response. Never raises: a failed thread fetch
degrades to the bare trigger text.
"""

from __future__ import annotations

import logging

from agentbot.core.protocols import ChatPlatform
from agentbot.core.types import IncomingMessage

from .state import BotIdentity

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "Previous conversation context:\n\n"
UNKNOWN_SPEAKER = "Unknown User"
DEFAULT_SPEAKER = "User"


class ThreadContextBuilder:
    def __init__(self, chat: ChatPlatform, identity: BotIdentity):
        self.chat = chat
        self.identity = identity

    async def build(self, message: IncomingMessage) -> str:
        """
        Build the transcript for the thread a message belongs to.

        Earlier posts come first in ascending post time (ties keep fetch
        order); the trigger message is always the last line.
        """
        root_id = message.root_id

        try:
            posts = await self.chat.get_thread_messages(root_id)
        except Exception as e:
            logger.warning(f"Failed to get thread context for {root_id}: {e}")
            return message.text

        posts = sorted(posts, key=lambda p: p.create_at)
        speakers: dict[str, str | None] = {}

        lines = [CONTEXT_HEADER]
        for post in posts:
            if post.id == message.post_id:
                continue
            speaker = await self._speaker(post.user_id, speakers) or UNKNOWN_SPEAKER
            lines.append(f"{speaker}: {post.text}\n")

        speaker = None
        if message.user_id:
            speaker = await self._speaker(message.user_id, speakers)
        lines.append(f"\n{speaker or DEFAULT_SPEAKER}: {message.text}")

        transcript = "".join(lines)
        logger.debug(
            f"Built context for thread {root_id} with {len(posts)} posts "
            f"({len(transcript)} chars)"
        )
        return transcript

    async def _speaker(self, user_id: str, cache: dict[str, str | None]) -> str | None:
        """Resolve a display label, or None if the user can't be looked up."""
        if user_id == self.identity.user_id:
            return self.identity.display_name
        if user_id not in cache:
            try:
                user = await self.chat.get_user(user_id)
                cache[user_id] = user.username
            except Exception as e:
                logger.debug(f"User lookup failed for {user_id}: {e}")
                cache[user_id] = None
        return cache[user_id]
