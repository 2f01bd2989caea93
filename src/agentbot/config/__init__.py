"""Configuration utilities for agentbot."""

from .loader import BotSettings, get_config_path, load_bot_settings

__all__ = ["BotSettings", "get_config_path", "load_bot_settings"]
