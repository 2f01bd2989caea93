"""
Runtime types for the agent.

Tunables shared across the runtime layer.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BotConfig:
    """Configuration for agent runtime."""

    reconnect_interval_seconds: float = 10.0
    sweep_interval_seconds: float = 600.0
    sweep_sample_size: int = 5
    stream_tick_seconds: float = 1.0
    stream_deadline_seconds: float = 300.0
    enable_streaming: bool = True
    placeholder_text: str = "_Thinking..._"
    max_tool_rounds: int = 10
