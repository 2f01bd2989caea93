"""Tests for the command-line entry point."""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from agentbot.__main__ import build_parser, main, setup_logging


class TestParser:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        args = build_parser().parse_args([])

        assert args.log_level == "INFO"
        assert args.no_stream is False
        assert args.no_health is False

    def test_flags(self):
        args = build_parser().parse_args(["-l", "DEBUG", "--no-stream", "--no-health"])

        assert args.log_level == "DEBUG"
        assert args.no_stream is True
        assert args.no_health is True


def test_setup_logging_quiets_httpx():
    setup_logging("debug")

    assert logging.getLogger("httpx").level == logging.WARNING


def test_configuration_error_exits_nonzero(monkeypatch):
    monkeypatch.setattr("sys.argv", ["agentbot", "--no-health"])

    with patch(
        "agentbot.__main__.load_bot_settings",
        side_effect=ValueError("Missing required settings: ANTHROPIC_API_KEY"),
    ):
        with pytest.raises(SystemExit) as exc_info:
            main()

    assert exc_info.value.code == 1


def test_runtime_value_error_is_not_a_configuration_error(monkeypatch, caplog):
    monkeypatch.setattr("sys.argv", ["agentbot", "--no-health"])

    with (
        patch("agentbot.__main__.load_bot_settings"),
        patch(
            "agentbot.__main__.run",
            AsyncMock(side_effect=ValueError("bad frame")),
        ),
    ):
        with pytest.raises(ValueError, match="bad frame"):
            main()

    assert "Configuration error" not in caplog.text
