"""
Run the agent.

Usage:
    python -m agentbot
    python -m agentbot --log-level DEBUG
    python -m agentbot --no-stream --no-health

Requires MATTERMOST_SERVER_URL, MATTERMOST_ACCESS_TOKEN,
MATTERMOST_BOT_USER_ID and ANTHROPIC_API_KEY (environment, .env or
agent_config.yaml).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from agentbot.agent import Agent
from agentbot.config import BotSettings, load_bot_settings
from agentbot.runtime.types import BotConfig


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure logging."""
    log_level = level.upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("agentbot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentbot",
        description="Run the chat agent",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Reply in one post instead of streaming updates",
    )
    parser.add_argument(
        "--no-health",
        action="store_true",
        help="Do not start the /health server",
    )
    return parser


async def run(
    args: argparse.Namespace, settings: BotSettings, logger: logging.Logger
) -> None:
    agent = Agent.create(
        settings,
        config=BotConfig(enable_streaming=not args.no_stream),
        enable_health=not args.no_health,
    )
    logger.info(f"Starting agent @{settings.bot_username} with model {settings.anthropic_model}")
    await agent.run()


def main() -> None:
    args = build_parser().parse_args()
    logger = setup_logging(args.log_level)

    try:
        settings = load_bot_settings()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise SystemExit(1)

    try:
        asyncio.run(run(args, settings, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
