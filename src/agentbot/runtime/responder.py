"""
Responder - the respond path for one incoming message.

typing indicator -> transcript -> reply target -> streaming or
single-shot reply -> active-thread bookkeeping.
"""

from __future__ import annotations

import asyncio
import logging
from agentbot.core.protocols import ChatPlatform, LLMProvider
from agentbot.core.types import IncomingMessage, OutgoingMessage

from .context import ThreadContextBuilder
from .state import ActiveThreadSet, BotIdentity
from .streaming import StreamingPublisher, StreamOutcome

logger = logging.getLogger(__name__)

APOLOGY_REPLY = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Please try again later."
)


class Responder:
    """
    Produces and posts the reply to a message the agent decided to answer.

    Replies into the same thread are serialized; different threads run
    concurrently.

    Example:
        responder = Responder(chat, llm, identity, threads, context_builder, publisher)
        await responder.respond(message)
    """

    def __init__(
        self,
        chat: ChatPlatform,
        llm: LLMProvider,
        identity: BotIdentity,
        threads: ActiveThreadSet,
        context_builder: ThreadContextBuilder,
        publisher: StreamingPublisher | None = None,
        enable_streaming: bool = True,
    ):
        self.chat = chat
        self.llm = llm
        self.identity = identity
        self.threads = threads
        self.context_builder = context_builder
        self.publisher = publisher or StreamingPublisher(chat)
        self.enable_streaming = enable_streaming
        # thread root -> lock, dropped once no reply holds or waits on it
        self._thread_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def respond(self, message: IncomingMessage) -> str | None:
        """
        Reply to a message.

        Returns:
            Thread id the reply went into, or None if it went to the
            channel root or could not be posted
        """
        key = message.root_id
        lock = self._thread_locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                return await self._respond(message)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._thread_locks[key]

    async def _respond(self, message: IncomingMessage) -> str | None:
        try:
            await self.chat.send_typing(message.channel_id, message.thread_id or None)
        except Exception as e:
            logger.warning(f"Failed to send typing indicator: {e}")

        transcript = await self.context_builder.build(message)
        thread_id = await self._reply_thread(message)
        target = OutgoingMessage(
            channel_id=message.channel_id, text="", thread_id=thread_id
        )

        if self.enable_streaming:
            try:
                session = await self.publisher.publish(
                    target, self.llm.prompt_stream(transcript)
                )
            except Exception as e:
                logger.error(f"Failed to post initial message: {e}")
                return None
            if session.outcome is not StreamOutcome.DEGRADED:
                self._track(thread_id)
                return thread_id
            logger.info("Streaming degraded, falling back to single-shot reply")

        return await self._reply_once(target, transcript)

    async def _reply_thread(self, message: IncomingMessage) -> str | None:
        """
        Where the reply goes.

        Existing thread -> that thread. Top-level mention -> new thread
        rooted at the post, if the post can be fetched. Otherwise the
        channel root.
        """
        if message.thread_id:
            return message.thread_id

        if self.identity.is_mentioned_in(message.text):
            try:
                await self.chat.get_message(message.post_id)
            except Exception as e:
                logger.warning(
                    f"Could not fetch post {message.post_id}, replying in channel: {e}"
                )
                return None
            return message.post_id

        return None

    async def _reply_once(self, target: OutgoingMessage, transcript: str) -> str | None:
        try:
            text = await self.llm.prompt(transcript)
        except Exception as e:
            logger.error(f"LLM call failed: {e}", exc_info=True)
            text = APOLOGY_REPLY

        try:
            await self.chat.post(
                OutgoingMessage(
                    channel_id=target.channel_id,
                    text=text,
                    thread_id=target.thread_id,
                )
            )
        except Exception as e:
            logger.error(f"Failed to post reply: {e}")
            return None

        logger.info(f"Posted reply ({len(text)} chars)")
        self._track(target.thread_id)
        return target.thread_id

    def _track(self, thread_id: str | None) -> None:
        if thread_id:
            self.threads.add(thread_id)
            logger.debug(f"Tracking thread {thread_id} ({len(self.threads)} active)")
