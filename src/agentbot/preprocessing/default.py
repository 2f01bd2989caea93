"""Default preprocessor - turns platform events into IncomingMessages."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from agentbot.core.types import IncomingMessage
from agentbot.platform.event import PlatformEvent, PostedEvent

logger = logging.getLogger(__name__)

DIRECT_CHANNEL_TYPE = "D"


class DefaultPreprocessor:
    """
    Default event preprocessor.

    Handles:
    - Event type filtering (only `posted` events pass)
    - Embedded post decoding
    - Self-message filtering
    - Direct-message detection from channel-type metadata

    Malformed events are expected background noise and are dropped
    without error logging.
    """

    def process(self, event: PlatformEvent, agent_id: str) -> IncomingMessage | None:
        """Process platform event into IncomingMessage, or None to skip."""
        match event:
            case PostedEvent(payload=data, channel_type=channel_type):
                pass
            case _:
                logger.debug(f"Ignoring {event.type} event")
                return None

        if data is None:
            return None

        try:
            post = data.parse_post()
        except (ValidationError, ValueError):
            logger.debug("Dropping posted event with unparseable post")
            return None

        # Skip messages from self
        if post.user_id == agent_id:
            logger.debug(f"Skipping own message {post.id}")
            return None

        return IncomingMessage(
            post_id=post.id,
            user_id=post.user_id,
            channel_id=post.channel_id,
            thread_id=post.root_id,
            text=post.message,
            is_dm=channel_type == DIRECT_CHANNEL_TYPE,
        )
