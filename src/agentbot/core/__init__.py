"""Core types and protocols."""

from .protocols import ChatPlatform, LLMProvider, ToolCollaborator
from .types import (
    ChatUser,
    Decision,
    DecisionReason,
    IncomingMessage,
    OutgoingMessage,
    StreamChunk,
    ThreadPost,
    ToolInvocation,
    ToolResult,
)

__all__ = [
    "ChatPlatform",
    "LLMProvider",
    "ToolCollaborator",
    "ChatUser",
    "Decision",
    "DecisionReason",
    "IncomingMessage",
    "OutgoingMessage",
    "StreamChunk",
    "ThreadPost",
    "ToolInvocation",
    "ToolResult",
]
