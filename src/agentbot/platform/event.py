"""
Platform events using tagged union pattern.

Raw websocket frames are parsed into typed events here. Only `posted`
events carry a payload the agent acts on; everything else is OtherEvent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError

from agentbot.client.streaming import PostedEventData, WebSocketEnvelope

logger = logging.getLogger(__name__)

POSTED = "posted"


@dataclass
class PostedEvent:
    """A message was posted. payload is None if the frame was malformed."""

    type: Literal["posted"] = POSTED
    payload: PostedEventData | None = None
    raw: dict[str, Any] | None = None

    @property
    def channel_type(self) -> str:
        return self.payload.channel_type if self.payload else ""


@dataclass
class OtherEvent:
    """Any event type the agent does not act on (typing, status, reactions...)."""

    type: str = ""
    raw: dict[str, Any] | None = None


# Union type for all platform events
PlatformEvent = PostedEvent | OtherEvent


def parse_event(raw: dict[str, Any]) -> PlatformEvent | None:
    """
    Parse a websocket frame into a PlatformEvent.

    Returns None for frames that are not events (e.g. replies to the
    authentication challenge).
    """
    try:
        envelope = WebSocketEnvelope.model_validate(raw)
    except ValidationError:
        return None

    if not envelope.event:
        return None

    if envelope.event != POSTED:
        return OtherEvent(type=envelope.event, raw=raw)

    try:
        payload = PostedEventData.model_validate(envelope.data)
    except ValidationError:
        logger.debug("posted event without a usable payload")
        payload = None
    return PostedEvent(payload=payload, raw=raw)
