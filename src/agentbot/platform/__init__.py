"""
Platform Layer - Wire-level connection to the chat platform.

Components:
    MattermostLink: WebSocket connection + event parsing (REST via .rest)
    PlatformEvent: Tagged union of platform events
"""

from .event import OtherEvent, PlatformEvent, PostedEvent, parse_event
from .link import MattermostLink

__all__ = [
    "MattermostLink",
    "OtherEvent",
    "PlatformEvent",
    "PostedEvent",
    "parse_event",
]
