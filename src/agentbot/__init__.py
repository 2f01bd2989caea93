"""
Agentbot - an LLM agent for Mattermost-style team chat.

Platform Layer:
    MattermostLink: WebSocket + REST transport
    PlatformEvent: Typed events from the platform

Runtime Layer:
    ConnectionSupervisor: Keeps the event stream connected
    ResponseDecisionEngine: Decides whether to reply
    Responder: Builds context and posts (or streams) the reply
    CleanupSweeper: Forgets threads that no longer exist

Providers:
    AnthropicProvider: Claude with web search and tool use
    AsanaTools: Asana task lookups exposed as tools

Example:
    from agentbot import Agent
    from agentbot.config import load_bot_settings

    agent = Agent.create(load_bot_settings())
    await agent.run()
"""

# Composition layer
from .agent import Agent

# Platform layer
from .platform import MattermostLink, PlatformEvent

# Runtime layer
from .runtime import (
    ActiveThreadSet,
    BotConfig,
    BotIdentity,
    CleanupSweeper,
    ConnectionSupervisor,
    Responder,
    ResponseDecisionEngine,
    StreamingPublisher,
    ThreadContextBuilder,
)

# Providers
from .adapters import AnthropicProvider
from .integrations.asana import AsanaTools

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "MattermostLink",
    "PlatformEvent",
    "ActiveThreadSet",
    "BotConfig",
    "BotIdentity",
    "CleanupSweeper",
    "ConnectionSupervisor",
    "Responder",
    "ResponseDecisionEngine",
    "StreamingPublisher",
    "ThreadContextBuilder",
    "AnthropicProvider",
    "AsanaTools",
]
