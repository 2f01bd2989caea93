"""
CleanupSweeper - bounded eviction of stale thread references.

Runs opportunistically: checked on every inbound event, acts only when the
sweep interval has elapsed. Each sweep probes a small sample of tracked
threads; the rest are left for later sweeps.
"""

from __future__ import annotations

import logging

from agentbot.core.protocols import ChatPlatform

from .state import ActiveThreadSet

logger = logging.getLogger(__name__)


class CleanupSweeper:
    def __init__(
        self,
        chat: ChatPlatform,
        threads: ActiveThreadSet,
        interval_seconds: float = 600.0,
        sample_size: int = 5,
    ):
        self.chat = chat
        self.threads = threads
        self.interval_seconds = interval_seconds
        self.sample_size = sample_size

    def is_due(self) -> bool:
        return (
            not self.threads.is_sweeping
            and self.threads.seconds_since_sweep() >= self.interval_seconds
        )

    async def maybe_sweep(self) -> list[str]:
        """Sweep if the interval elapsed, otherwise do nothing."""
        if not self.is_due():
            return []
        return await self.sweep()

    async def sweep(self) -> list[str]:
        """
        Probe a sample of tracked threads and evict unreachable ones.

        Returns:
            The evicted thread ids
        """
        logger.info("Cleaning up stale thread references")
        evicted = await self.threads.sample_and_evict(self.sample_size, self._probe)
        for thread_id in evicted:
            logger.info(f"Removed stale thread {thread_id}")
        logger.info(f"Cleanup completed, {len(self.threads)} active threads remaining")
        return evicted

    async def _probe(self, thread_id: str) -> bool:
        try:
            await self.chat.get_message(thread_id)
        except Exception as e:
            logger.debug(f"Thread {thread_id} unreachable: {e}")
            return False
        return True
