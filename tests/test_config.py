"""
Config loading tests - verify settings resolution.

Tests cover required keys, defaults, the YAML layer, environment
precedence and invalid integers.
"""

import pytest

from agentbot.config import load_bot_settings

ENV_KEYS = [
    "MATTERMOST_SERVER_URL",
    "MATTERMOST_ACCESS_TOKEN",
    "MATTERMOST_BOT_USER_ID",
    "BOT_USERNAME",
    "BOT_DISPLAY_NAME",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "LLM_MAX_TOKENS",
    "WEB_SEARCH_MAX_USES",
    "DECISION_MODEL",
    "DECISION_MAX_TOKENS",
    "ASANA_API_KEY",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Isolate from the real environment, .env and agent_config.yaml."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "agentbot.config.loader.get_config_path",
        lambda: tmp_path / "agent_config.yaml",
    )
    return tmp_path


@pytest.fixture
def required_env(monkeypatch):
    monkeypatch.setenv("MATTERMOST_SERVER_URL", "https://chat.example.com")
    monkeypatch.setenv("MATTERMOST_ACCESS_TOKEN", "mm-token")
    monkeypatch.setenv("MATTERMOST_BOT_USER_ID", "bot-1")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")


def test_defaults(required_env):
    """Should fill every optional setting with its default."""
    settings = load_bot_settings()

    assert settings.server_url == "https://chat.example.com"
    assert settings.access_token == "mm-token"
    assert settings.bot_user_id == "bot-1"
    assert settings.anthropic_api_key == "sk-test"
    assert settings.bot_username == "agent-bot"
    assert settings.bot_display_name == "Assistant"
    assert settings.anthropic_model == "claude-sonnet-4-20250514"
    assert settings.llm_max_tokens == 4096
    assert settings.web_search_max_uses == 3
    assert settings.decision_model == "claude-3-5-haiku-20241022"
    assert settings.decision_max_tokens == 512
    assert settings.asana_api_key is None
    assert settings.port == 8081


def test_missing_required_settings():
    """Should raise ValueError naming every missing key."""
    with pytest.raises(ValueError) as exc_info:
        load_bot_settings()

    message = str(exc_info.value)
    assert "MATTERMOST_SERVER_URL" in message
    assert "MATTERMOST_ACCESS_TOKEN" in message
    assert "MATTERMOST_BOT_USER_ID" in message
    assert "ANTHROPIC_API_KEY" in message


def test_empty_required_value_counts_as_missing(required_env, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        load_bot_settings()


def test_invalid_integers_fall_back(required_env, monkeypatch):
    monkeypatch.setenv("LLM_MAX_TOKENS", "lots")
    monkeypatch.setenv("PORT", "80a")
    monkeypatch.setenv("WEB_SEARCH_MAX_USES", "5")

    settings = load_bot_settings()

    assert settings.llm_max_tokens == 4096
    assert settings.port == 8081
    assert settings.web_search_max_uses == 5


def test_yaml_layer(clean_env):
    """Should read settings from agent_config.yaml (keys case-insensitive)."""
    (clean_env / "agent_config.yaml").write_text(
        """
mattermost_server_url: https://yaml.example.com
MATTERMOST_ACCESS_TOKEN: yaml-token
MATTERMOST_BOT_USER_ID: yaml-bot
ANTHROPIC_API_KEY: sk-yaml
BOT_DISPLAY_NAME: Helper
DECISION_MAX_TOKENS: 64
"""
    )

    settings = load_bot_settings()

    assert settings.server_url == "https://yaml.example.com"
    assert settings.bot_display_name == "Helper"
    assert settings.decision_max_tokens == 64


def test_environment_wins_over_yaml(clean_env, required_env, monkeypatch):
    (clean_env / "agent_config.yaml").write_text("BOT_USERNAME: from-yaml\n")
    monkeypatch.setenv("BOT_USERNAME", "from-env")

    assert load_bot_settings().bot_username == "from-env"


def test_dotenv_file(clean_env, monkeypatch):
    env_file = clean_env / ".env"
    env_file.write_text(
        "MATTERMOST_SERVER_URL=https://dotenv.example.com\n"
        "MATTERMOST_ACCESS_TOKEN=t\n"
        "MATTERMOST_BOT_USER_ID=b\n"
        "ANTHROPIC_API_KEY=k\n"
        "ASANA_API_KEY=asana-key\n"
    )
    # load_dotenv writes into os.environ; let monkeypatch restore it
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)

    settings = load_bot_settings(env_file)

    assert settings.server_url == "https://dotenv.example.com"
    assert settings.asana_api_key == "asana-key"


def test_non_mapping_yaml_is_rejected(clean_env, required_env):
    (clean_env / "agent_config.yaml").write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_bot_settings()
