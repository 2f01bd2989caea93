"""
StreamingPublisher - incremental delivery of a streaming reply.

Reserves a placeholder post, then runs a producer/consumer pair:
- consumer task appends deltas to the session buffer
- ticker replaces the placeholder with the full buffer when it grew

Every session ends with exactly one terminal flush:
- completed: deltas closed normally (or a done chunk arrived)
- error: an error chunk arrived or the delta source raised
- cancelled: the deadline expired or the publisher task was cancelled
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator

from agentbot.core.protocols import ChatPlatform
from agentbot.core.types import OutgoingMessage, StreamChunk

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "_Thinking..._"
ERROR_NOTE = "\n\n_Error: Failed to complete response_"
CANCELLED_NOTE = "\n\n_Response cancelled_"
EMPTY_REPLY = "_No response generated_"


class StreamOutcome(str, Enum):
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"
    DEGRADED = "degraded"  # placeholder id unknown, nothing was streamed


@dataclass
class StreamSession:
    """State of one streaming reply. Owned by a single publish() call."""

    post_id: str
    text: str = ""
    flushed_length: int = 0
    last_flush: float = 0.0
    error: BaseException | None = None
    outcome: StreamOutcome | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_terminated(self) -> bool:
        return self.outcome is not None


class StreamingPublisher:
    """
    Publishes a delta stream into a placeholder post.

    Example:
        publisher = StreamingPublisher(chat)
        session = await publisher.publish(
            OutgoingMessage(channel_id="c1", text="", thread_id="root-1"),
            llm.prompt_stream(transcript),
        )
        if session.outcome is StreamOutcome.DEGRADED:
            ...  # fall back to a single-shot reply
    """

    def __init__(
        self,
        chat: ChatPlatform,
        tick_seconds: float = 1.0,
        deadline_seconds: float = 300.0,
        placeholder_text: str = PLACEHOLDER_TEXT,
    ):
        self.chat = chat
        self.tick_seconds = tick_seconds
        self.deadline_seconds = deadline_seconds
        self.placeholder_text = placeholder_text

    async def publish(
        self, target: OutgoingMessage, deltas: AsyncIterator[StreamChunk]
    ) -> StreamSession:
        """
        Stream deltas into a new placeholder post in target's channel/thread.

        Raises:
            Whatever chat.post raises if the placeholder cannot be created
        """
        post_id = await self.chat.post(
            OutgoingMessage(
                channel_id=target.channel_id,
                text=self.placeholder_text,
                thread_id=target.thread_id,
            )
        )

        if not post_id:
            logger.warning("Could not get placeholder id, streaming disabled for reply")
            await _aclose(deltas)
            return StreamSession(post_id="", outcome=StreamOutcome.DEGRADED)

        loop = asyncio.get_running_loop()
        session = StreamSession(post_id=post_id, last_flush=loop.time())
        logger.debug(f"Streaming into post {post_id}")
        await self._run(session, deltas)
        return session

    async def _run(self, session: StreamSession, deltas: AsyncIterator[StreamChunk]) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.deadline_seconds
        consumer = asyncio.create_task(
            self._consume(session, deltas),
            name=f"stream-{session.post_id}",
        )

        try:
            while not consumer.done():
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                await asyncio.wait({consumer}, timeout=min(self.tick_seconds, remaining))
                if consumer.done():
                    break
                await self._flush_progress(session)
        except asyncio.CancelledError:
            await _cancel(consumer)
            await self._finish(session, StreamOutcome.CANCELLED)
            raise

        if not consumer.done():
            logger.warning(f"Stream {session.post_id} hit its deadline")
            await _cancel(consumer)
            outcome = StreamOutcome.CANCELLED
        elif session.error is not None:
            outcome = StreamOutcome.ERROR
        else:
            outcome = StreamOutcome.COMPLETED

        await self._finish(session, outcome)

    async def _consume(
        self, session: StreamSession, deltas: AsyncIterator[StreamChunk]
    ) -> None:
        try:
            async for chunk in deltas:
                if chunk.error is not None:
                    logger.warning(f"Stream {session.post_id} error: {chunk.error}")
                    session.error = chunk.error
                    return
                if chunk.done:
                    return
                if chunk.content:
                    async with session.lock:
                        session.text += chunk.content
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Stream {session.post_id} source failed: {e}", exc_info=True)
            session.error = e
        finally:
            await _aclose(deltas)

    async def _flush_progress(self, session: StreamSession) -> None:
        """Replace the placeholder with the buffer if it grew since last flush."""
        async with session.lock:
            text = session.text
        if len(text) <= session.flushed_length:
            return

        try:
            await self.chat.update(session.post_id, text)
        except Exception as e:
            logger.warning(f"Failed to update post {session.post_id}: {e}")
            return

        session.flushed_length = len(text)
        session.last_flush = asyncio.get_running_loop().time()
        logger.debug(f"Updated post {session.post_id} ({len(text)} chars)")

    async def _finish(self, session: StreamSession, outcome: StreamOutcome) -> None:
        """Terminal flush. Called exactly once per session."""
        async with session.lock:
            body = session.text

        if outcome is StreamOutcome.ERROR:
            body += ERROR_NOTE
        elif outcome is StreamOutcome.CANCELLED:
            body += CANCELLED_NOTE
        if not body:
            body = EMPTY_REPLY

        session.outcome = outcome
        try:
            await self.chat.update(session.post_id, body)
        except Exception as e:
            logger.error(f"Failed to finalize post {session.post_id}: {e}")
            return

        session.flushed_length = len(session.text)
        logger.info(
            f"Stream {session.post_id} {outcome.value} ({len(body)} chars total)"
        )


async def _cancel(task: asyncio.Task[None]) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def _aclose(deltas: AsyncIterator[StreamChunk]) -> None:
    aclose = getattr(deltas, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.debug(f"Error closing delta stream: {e}")
