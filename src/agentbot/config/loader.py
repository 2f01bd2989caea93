"""
Agent configuration loading.

Settings come from three layers, later layers winning:
    1. .env file (python-dotenv, does not override the real environment)
    2. agent_config.yaml in the project root (optional)
    3. Environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    "MATTERMOST_SERVER_URL",
    "MATTERMOST_ACCESS_TOKEN",
    "MATTERMOST_BOT_USER_ID",
    "ANTHROPIC_API_KEY",
)


@dataclass(frozen=True)
class BotSettings:
    """Credentials and model settings for one agent process."""

    server_url: str
    access_token: str
    bot_user_id: str
    anthropic_api_key: str
    bot_username: str = "agent-bot"
    bot_display_name: str = "Assistant"
    anthropic_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4096
    web_search_max_uses: int = 3
    decision_model: str = "claude-3-5-haiku-20241022"
    decision_max_tokens: int = 512
    asana_api_key: str | None = None
    port: int = 8081


def get_config_path() -> Path:
    """
    Get the path to the agent configuration file.

    Looks for agent_config.yaml in the current working directory (project root).
    """
    return Path(os.getcwd()) / "agent_config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    logger.debug(f"Loading config from: {path}")
    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
    except Exception as e:
        raise RuntimeError(f"Error loading agent config: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"{path} must contain a mapping of setting names to values")
    return {str(k).upper(): v for k, v in config.items() if v is not None}


def _int_setting(values: Mapping[str, Any], key: str, default: int) -> int:
    raw = values.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for {key}: {raw!r}, using {default}")
        return default


def load_bot_settings(env_file: str | Path | None = None) -> BotSettings:
    """
    Load agent settings.

    Args:
        env_file: .env file to load (default: search from the working directory)

    Returns:
        BotSettings

    Raises:
        ValueError: If required settings are missing or empty
        RuntimeError: If agent_config.yaml exists but can't be read
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    values: dict[str, Any] = _load_yaml(get_config_path())
    values.update({k: v for k, v in os.environ.items() if v != ""})

    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise ValueError(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them in the environment, .env or agent_config.yaml."
        )

    asana_key = values.get("ASANA_API_KEY") or None
    if asana_key is None:
        logger.info("ASANA_API_KEY not set, Asana tools disabled")

    return BotSettings(
        server_url=str(values["MATTERMOST_SERVER_URL"]),
        access_token=str(values["MATTERMOST_ACCESS_TOKEN"]),
        bot_user_id=str(values["MATTERMOST_BOT_USER_ID"]),
        anthropic_api_key=str(values["ANTHROPIC_API_KEY"]),
        bot_username=str(values.get("BOT_USERNAME") or "agent-bot"),
        bot_display_name=str(values.get("BOT_DISPLAY_NAME") or "Assistant"),
        anthropic_model=str(values.get("ANTHROPIC_MODEL") or "claude-sonnet-4-20250514"),
        llm_max_tokens=_int_setting(values, "LLM_MAX_TOKENS", 4096),
        web_search_max_uses=_int_setting(values, "WEB_SEARCH_MAX_USES", 3),
        decision_model=str(values.get("DECISION_MODEL") or "claude-3-5-haiku-20241022"),
        decision_max_tokens=_int_setting(values, "DECISION_MAX_TOKENS", 512),
        asana_api_key=str(asana_key) if asana_key else None,
        port=_int_setting(values, "PORT", 8081),
    )
