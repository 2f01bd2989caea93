"""
Anthropic provider: the tool-use conversation loop.

Drives Claude through as many tool rounds as it asks for (bounded by
max_tool_rounds), dispatching tool_use blocks to a ToolCollaborator and
feeding results back as one aggregated user turn per round.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, cast

from anthropic import AsyncAnthropic
from anthropic.types import Message, MessageParam, TextBlock, ToolParam, ToolUseBlock

from agentbot.core.protocols import ToolCollaborator
from agentbot.core.types import StreamChunk, ToolInvocation, ToolResult

logger = logging.getLogger(__name__)

NO_TEXT_REPLY = (
    "I received your message and processed it with Claude, "
    "but no text content was returned."
)
ROUND_LIMIT_REPLY = (
    "I ran out of steps while working on this request. "
    "Please try asking again more specifically."
)
WEB_SEARCH_TOOL_TYPE = "web_search_20250305"


class AnthropicProvider:
    """
    LLM provider backed by the Anthropic Messages API.

    One instance is the reply model (tools enabled); a second, cheaper one
    with enable_tools=False serves as the decision judge.

    Example:
        llm = AnthropicProvider(
            model="claude-sonnet-4-20250514",
            tools=AsanaTools(AsanaClient(api_key)),
            web_search_max_uses=3,
        )
        reply = await llm.prompt(transcript)

        async for chunk in llm.prompt_stream(transcript):
            ...
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        anthropic_api_key: str | None = None,
        max_tokens: int = 4096,
        system_prompt: str | None = None,
        tools: ToolCollaborator | None = None,
        enable_tools: bool = True,
        web_search_max_uses: int = 3,
        max_tool_rounds: int = 10,
        client: AsyncAnthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.tools = tools
        self.enable_tools = enable_tools
        self.web_search_max_uses = web_search_max_uses
        self.max_tool_rounds = max_tool_rounds

        # Anthropic client (uses ANTHROPIC_API_KEY env var if not provided)
        self.client = client or AsyncAnthropic(api_key=anthropic_api_key)

    # --- LLMProvider protocol ---

    async def prompt(self, text: str) -> str:
        """
        Run the tool loop to completion and return the concatenated text.

        Raises:
            anthropic.APIError (or subclasses) if a model call fails
        """
        messages: list[dict[str, Any]] = [{"role": "user", "content": text}]
        catalog = self._tool_catalog()
        texts: list[str] = []

        logger.info(
            f"Calling {self.model} ({len(text)} chars, {len(catalog)} tools)"
        )

        for round_number in range(1, self.max_tool_rounds + 1):
            response = await self._call_anthropic(messages, catalog)
            logger.debug(
                f"Round {round_number}: stop_reason={response.stop_reason}, "
                f"{len(response.content)} blocks"
            )

            texts.extend(self._extract_text_content(response.content))
            invocations = self._tool_invocations(response.content)
            if not invocations:
                return self._final_reply(texts)

            await self._continue_with_tools(messages, response, invocations)

        logger.warning(f"Hit max tool rounds ({self.max_tool_rounds})")
        return "".join(texts) or ROUND_LIMIT_REPLY

    async def prompt_stream(self, text: str) -> AsyncIterator[StreamChunk]:
        """
        Streaming variant of prompt().

        Text deltas of every round are yielded as they arrive. Provider
        failures are yielded as an error chunk and end the stream.
        """
        messages: list[dict[str, Any]] = [{"role": "user", "content": text}]
        catalog = self._tool_catalog()
        emitted = False

        try:
            for round_number in range(1, self.max_tool_rounds + 1):
                async with self.client.messages.stream(
                    **self._request_params(messages, catalog)
                ) as stream:
                    async for delta in stream.text_stream:
                        if delta:
                            emitted = True
                            yield StreamChunk(content=delta)
                    response = await stream.get_final_message()

                invocations = self._tool_invocations(response.content)
                if not invocations:
                    break

                logger.debug(
                    f"Stream round {round_number}: {len(invocations)} tool calls"
                )
                await self._continue_with_tools(messages, response, invocations)
            else:
                logger.warning(f"Hit max tool rounds ({self.max_tool_rounds})")
                if not emitted:
                    emitted = True
                    yield StreamChunk(content=ROUND_LIMIT_REPLY)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Streaming call to {self.model} failed: {e}", exc_info=True)
            yield StreamChunk(error=e)
            return

        if not emitted:
            logger.info("No text content streamed, using fallback")
            yield StreamChunk(content=NO_TEXT_REPLY)
        yield StreamChunk(done=True)

    # --- Tool loop helpers ---

    async def _continue_with_tools(
        self,
        messages: list[dict[str, Any]],
        response: Message,
        invocations: list[ToolInvocation],
    ) -> None:
        """Append the assistant turn and one aggregated tool_result turn."""
        messages.append(
            {
                "role": "assistant",
                "content": self._serialize_content_blocks(response.content),
            }
        )
        results = await self._process_tool_calls(invocations)
        messages.append(
            {
                "role": "user",
                "content": [result.to_block() for result in results],
            }
        )

    def _tool_catalog(self) -> list[Any]:
        if not self.enable_tools:
            return []

        catalog: list[Any] = []
        if self.web_search_max_uses > 0:
            catalog.append(
                {
                    "type": WEB_SEARCH_TOOL_TYPE,
                    "name": "web_search",
                    "max_uses": self.web_search_max_uses,
                }
            )
        if self.tools is not None:
            catalog.extend(self.tools.get_anthropic_tool_schemas())
        return catalog

    def _request_params(
        self, messages: list[dict[str, Any]], catalog: list[Any]
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": cast(list[MessageParam], messages),
        }
        if self.system_prompt:
            params["system"] = self.system_prompt
        if catalog:
            params["tools"] = cast(list[ToolParam], catalog)
        return params

    async def _call_anthropic(
        self,
        messages: list[dict[str, Any]],
        tools: list[Any],
    ) -> Message:
        """
        Call Anthropic API with messages and tools.

        Args:
            messages: Conversation so far
            tools: Tool catalog (may be empty)

        Returns:
            Anthropic Message response
        """
        return await self.client.messages.create(
            **self._request_params(messages, tools)
        )

    def _final_reply(self, texts: list[str]) -> str:
        result = "".join(texts)
        if not result:
            logger.info("No text content extracted, using fallback")
            return NO_TEXT_REPLY
        logger.info(f"Extracted response text ({len(result)} chars total)")
        return result

    def _extract_text_content(self, content: list) -> list[str]:
        """Extract text segments from response content blocks."""
        return [
            block.text
            for block in content
            if isinstance(block, TextBlock) and block.text
        ]

    def _tool_invocations(self, content: list) -> list[ToolInvocation]:
        """Client-side tool calls. Server tools (web search) run at the provider."""
        return [
            ToolInvocation(id=block.id, name=block.name, input=dict(block.input or {}))
            for block in content
            if isinstance(block, ToolUseBlock)
        ]

    def _serialize_content_blocks(self, content: list) -> list[dict[str, Any]]:
        """Serialize content blocks to dict format for the next request."""
        serialized = []
        for block in content:
            if isinstance(block, ToolUseBlock):
                serialized.append(
                    {
                        "type": "tool_use",
                        "id": block.id,
                        "name": block.name,
                        "input": block.input,
                    }
                )
            elif isinstance(block, TextBlock):
                if block.text:  # Only include non-empty text
                    serialized.append({"type": "text", "text": block.text})
            elif hasattr(block, "model_dump"):
                # server_tool_use / web_search_tool_result must be echoed back
                serialized.append(block.model_dump(exclude_none=True))
        return serialized

    async def _process_tool_calls(
        self, invocations: list[ToolInvocation]
    ) -> list[ToolResult]:
        """
        Execute tool calls and convert outcomes to tool results.

        Failures become error results so the model can react to them.
        """
        results = []

        for invocation in invocations:
            logger.debug(
                f"Executing tool: {invocation.name} with input: {invocation.input}"
            )

            if self.tools is None:
                results.append(
                    ToolResult(
                        tool_use_id=invocation.id,
                        content=f"Unknown tool: {invocation.name}",
                        is_error=True,
                    )
                )
                continue

            try:
                result = await self.tools.execute_tool_call(
                    invocation.name, invocation.input
                )
                result_str = (
                    json.dumps(result, default=str)
                    if not isinstance(result, str)
                    else result
                )
                is_error = False
            except Exception as e:
                result_str = f"Error: {e}"
                is_error = True
                logger.error(f"Tool {invocation.name} failed: {e}")

            logger.debug(f"Tool result: {result_str[:200]}")
            results.append(
                ToolResult(
                    tool_use_id=invocation.id,
                    content=result_str,
                    is_error=is_error,
                )
            )

        return results
