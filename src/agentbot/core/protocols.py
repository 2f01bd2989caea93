"""Capability interfaces for the chat platform, LLM provider and tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncIterator, Protocol, runtime_checkable

if TYPE_CHECKING:
    from anthropic.types import ToolParam

    from agentbot.core.types import ChatUser, OutgoingMessage, StreamChunk, ThreadPost


@runtime_checkable
class ChatPlatform(Protocol):
    """
    Chat platform write-back and lookup operations.

    Implementations: MattermostRestClient (default), FakeChatPlatform (testing)

    Lookups raise NotFoundError for missing resources and PlatformError
    for any other failure.
    """

    async def post(self, message: "OutgoingMessage") -> str:
        """Create a post. Returns the new post id (may be empty if unknown)."""
        ...

    async def update(self, post_id: str, text: str) -> None:
        """Replace the text of an existing post."""
        ...

    async def send_typing(self, channel_id: str, thread_id: str | None = None) -> None:
        """Show the typing indicator in a channel or thread."""
        ...

    async def get_message(self, post_id: str) -> "ThreadPost":
        """Fetch a single post."""
        ...

    async def get_thread_messages(self, root_id: str) -> list["ThreadPost"]:
        """Fetch every post under a thread root, in fetch order."""
        ...

    async def get_user(self, user_id: str) -> "ChatUser":
        """Fetch a user."""
        ...


@runtime_checkable
class LLMProvider(Protocol):
    """
    Language model access.

    Implementations: AnthropicProvider (default), FakeLLM (testing)
    """

    async def prompt(self, text: str) -> str:
        """Run a full conversation for one user turn and return the reply."""
        ...

    def prompt_stream(self, text: str) -> AsyncIterator["StreamChunk"]:
        """
        Stream the reply for one user turn.

        Yields content chunks, then a done chunk. Failures are yielded as
        error chunks instead of being raised.
        """
        ...


@runtime_checkable
class ToolCollaborator(Protocol):
    """
    External tools the model may call.

    execute_tool_call() returns either a structured value or an error
    string. It never raises, so the model can see errors and retry.

    Implementations: AsanaTools (default), FakeAgentTools (testing)
    """

    def get_anthropic_tool_schemas(self) -> list["ToolParam"]:
        """Get tool schemas in Anthropic format."""
        ...

    async def execute_tool_call(self, tool_name: str, arguments: dict[str, Any]) -> Any:
        """Execute a tool call by name with validated arguments."""
        ...
