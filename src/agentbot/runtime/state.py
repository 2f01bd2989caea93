"""Agent identity and active-thread tracking. Sync membership, unit-testable."""

from __future__ import annotations

import asyncio
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BotIdentity:
    """Who the agent is on the chat platform."""

    user_id: str
    username: str
    display_name: str

    @property
    def mention(self) -> str:
        return f"@{self.username}"

    def is_mentioned_in(self, text: str) -> bool:
        """True if text addresses the agent by handle or raw user id."""
        return self.mention in text or (bool(self.user_id) and self.user_id in text)


class ActiveThreadSet:
    """
    Thread roots the agent has posted into.

    Written by the response path (add) and the cleanup sweeper
    (sample_and_evict). Membership operations take a lock; sweeps are
    serialized with a separate asyncio lock so a sweep never holds the
    membership lock across network calls.
    """

    def __init__(
        self,
        thread_ids: Iterable[str] = (),
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ids: dict[str, None] = dict.fromkeys(thread_ids)
        self._lock = threading.Lock()
        self._sweep_lock = asyncio.Lock()
        self._rng = rng or random.Random()
        self._clock = clock
        self.last_sweep: float = clock()

    def add(self, thread_id: str) -> None:
        if not thread_id:
            return
        with self._lock:
            self._ids[thread_id] = None

    def discard(self, thread_id: str) -> None:
        with self._lock:
            self._ids.pop(thread_id, None)

    def __contains__(self, thread_id: object) -> bool:
        if not thread_id:
            return False
        with self._lock:
            return thread_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._ids)

    def sample(self, k: int) -> list[str]:
        """Pick up to k tracked ids."""
        population = self.snapshot()
        if len(population) <= k:
            return population
        return self._rng.sample(population, k)

    def seconds_since_sweep(self) -> float:
        return self._clock() - self.last_sweep

    @property
    def is_sweeping(self) -> bool:
        return self._sweep_lock.locked()

    async def sample_and_evict(
        self, k: int, probe: Callable[[str], Awaitable[bool]]
    ) -> list[str]:
        """
        Probe up to k sampled ids and evict the unreachable ones.

        probe returns True if the thread is still reachable. Ids outside
        the sample are left alone.

        Returns:
            The evicted ids
        """
        async with self._sweep_lock:
            sampled = self.sample(k)
            stale = [thread_id for thread_id in sampled if not await probe(thread_id)]

            with self._lock:
                for thread_id in stale:
                    self._ids.pop(thread_id, None)
            self.last_sweep = self._clock()

        return stale
