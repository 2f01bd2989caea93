"""
Agentbot Runtime Layer - Deciding, replying and keeping the link alive.

Components:
    ConnectionSupervisor: Websocket lifecycle and receive loop
    ResponseDecisionEngine: Respond/no-respond policy
    ThreadContextBuilder: Speaker-labelled thread transcript
    Responder: Reply path (thread targeting, streaming or single-shot)
    StreamingPublisher: Incremental updates of a placeholder post
    CleanupSweeper: Bounded eviction of stale thread references
    HealthServer: GET /health

State:
    BotIdentity: Who the agent is
    ActiveThreadSet: Threads the agent has posted into
"""

# Types
from .types import BotConfig

# State
from .state import ActiveThreadSet, BotIdentity

# Core runtime components
from .context import ThreadContextBuilder
from .decision import ResponseDecisionEngine, heuristic_should_respond, parse_judgment
from .streaming import StreamingPublisher, StreamOutcome, StreamSession
from .responder import Responder
from .sweeper import CleanupSweeper
from .supervisor import ConnectionSupervisor
from .health import HealthServer, build_health_app

# Utilities
from .prompts import render_judge_prompt, render_system_prompt

__all__ = [
    # Types
    "BotConfig",
    # State
    "ActiveThreadSet",
    "BotIdentity",
    # Core components
    "ThreadContextBuilder",
    "ResponseDecisionEngine",
    "heuristic_should_respond",
    "parse_judgment",
    "StreamingPublisher",
    "StreamOutcome",
    "StreamSession",
    "Responder",
    "CleanupSweeper",
    "ConnectionSupervisor",
    "HealthServer",
    "build_health_app",
    # Utilities
    "render_judge_prompt",
    "render_system_prompt",
]
