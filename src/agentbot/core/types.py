"""
Core data types for the response pipeline.

Records that flow between the router, the decision engine, the context
builder, the LLM provider and the chat platform write-back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class IncomingMessage:
    """
    A post the agent received from the event stream.

    thread_id is empty when the post starts a new thread.
    """

    post_id: str
    user_id: str
    channel_id: str
    thread_id: str
    text: str
    is_dm: bool = False

    @property
    def root_id(self) -> str:
        """Thread root this post belongs to, or would become the root of."""
        return self.thread_id or self.post_id


@dataclass(frozen=True)
class OutgoingMessage:
    """A reply to post on the chat platform."""

    channel_id: str
    text: str
    thread_id: str | None = None


@dataclass(frozen=True)
class ThreadPost:
    """A post fetched from the chat platform."""

    id: str
    user_id: str
    channel_id: str
    thread_id: str
    text: str
    create_at: int = 0


@dataclass(frozen=True)
class ChatUser:
    id: str
    username: str
    is_bot: bool = False


@dataclass
class StreamChunk:
    """
    One item of a streaming reply.

    Exactly one of content / done / error is meaningful.
    """

    content: str = ""
    done: bool = False
    error: BaseException | None = None


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Result of a tool call, as fed back to the model."""

    tool_use_id: str
    content: str
    is_error: bool = False

    def to_block(self) -> dict[str, Any]:
        """Anthropic tool_result content block."""
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": self.content,
            "is_error": self.is_error,
        }


class DecisionReason(str, Enum):
    MENTION = "mention"
    DIRECT_MESSAGE = "direct_message"
    THREAD_JUDGE = "thread_judge"
    THREAD_HEURISTIC = "thread_heuristic"
    NONE = "none"


@dataclass(frozen=True)
class Decision:
    """Outcome of the respond/no-respond policy."""

    respond: bool
    reason: DecisionReason = DecisionReason.NONE

    def __bool__(self) -> bool:
        return self.respond
