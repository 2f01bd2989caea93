"""
REST client for the chat platform.

Usage:
    from agentbot.client.rest import MattermostRestClient, NotFoundError
"""

from .client import MattermostRestClient, NotFoundError, PlatformError
from .models import Post, PostList, User

__all__ = [
    "MattermostRestClient",
    "NotFoundError",
    "PlatformError",
    "Post",
    "PostList",
    "User",
]
