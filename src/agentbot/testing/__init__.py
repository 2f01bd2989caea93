"""Test doubles for agentbot collaborators."""

from .fake_llm import FakeLLM
from .fake_platform import FakeChatPlatform
from .fake_tools import FakeAgentTools

__all__ = ["FakeAgentTools", "FakeChatPlatform", "FakeLLM"]
