"""
ResponseDecisionEngine - should the agent reply to this message?

Policy, in strict precedence order:
    1. Mention (handle or raw user id anywhere in the text) -> respond
    2. Direct message -> respond
    3. Post in a thread the agent is active in -> thread judgment
    4. Otherwise -> stay quiet

Thread judgment asks a small judge model for YES/NO. Unclear answers
and judge failures fall back to a local heuristic.
"""

from __future__ import annotations

import logging
import re

from agentbot.core.protocols import LLMProvider
from agentbot.core.types import Decision, DecisionReason, IncomingMessage

from .context import ThreadContextBuilder
from .prompts import render_judge_prompt
from .state import ActiveThreadSet, BotIdentity

logger = logging.getLogger(__name__)

QUESTION_MARKERS = (
    "how",
    "what",
    "when",
    "where",
    "why",
    "who",
    "can you",
    "could you",
    "would you",
    "do you",
)
CASUAL_MARKERS = ("lol", "haha")
MIN_SUBSTANTIVE_LENGTH = 10

_NO_PATTERN = re.compile(r"\bNO\b")


def heuristic_should_respond(text: str) -> bool:
    """
    Local fallback for thread participation.

    Order matters: question signals win over the short/casual check.
    """
    msg = text.lower()

    if "?" in msg:
        return True

    if any(marker in msg for marker in QUESTION_MARKERS):
        return True

    if len(msg) < MIN_SUBSTANTIVE_LENGTH or any(m in msg for m in CASUAL_MARKERS):
        return False

    return True


def parse_judgment(reply: str) -> bool | None:
    """YES -> True, NO -> False, anything else -> None."""
    answer = reply.strip().upper()
    if "YES" in answer:
        return True
    if _NO_PATTERN.search(answer):
        return False
    return None


class ResponseDecisionEngine:
    """
    Applies the respond/no-respond policy.

    Example:
        engine = ResponseDecisionEngine(identity, threads, context_builder, judge)
        decision = await engine.decide(message)
        if decision:
            ...
    """

    def __init__(
        self,
        identity: BotIdentity,
        threads: ActiveThreadSet,
        context_builder: ThreadContextBuilder,
        judge: LLMProvider | None = None,
    ):
        self.identity = identity
        self.threads = threads
        self.context_builder = context_builder
        self.judge = judge

    async def decide(self, message: IncomingMessage) -> Decision:
        if self.identity.is_mentioned_in(message.text):
            return Decision(True, DecisionReason.MENTION)

        if message.is_dm:
            return Decision(True, DecisionReason.DIRECT_MESSAGE)

        if message.thread_id and message.thread_id in self.threads:
            return await self._judge_thread(message)

        return Decision(False, DecisionReason.NONE)

    async def _judge_thread(self, message: IncomingMessage) -> Decision:
        if self.judge is None:
            return self._fallback(message)

        transcript = await self.context_builder.build(message)
        prompt = render_judge_prompt(
            transcript=transcript,
            username=self.identity.username,
            display_name=self.identity.display_name,
        )

        try:
            reply = await self.judge.prompt(prompt)
        except Exception as e:
            logger.warning(f"Decision LLM call failed, using fallback: {e}")
            return self._fallback(message)

        verdict = parse_judgment(reply)
        logger.info(f"Decision LLM response {reply.strip()!r} -> {verdict}")
        if verdict is None:
            return self._fallback(message)
        return Decision(verdict, DecisionReason.THREAD_JUDGE)

    def _fallback(self, message: IncomingMessage) -> Decision:
        return Decision(
            heuristic_should_respond(message.text), DecisionReason.THREAD_HEURISTIC
        )
