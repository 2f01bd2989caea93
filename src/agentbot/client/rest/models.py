"""Mattermost API v4 response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from agentbot.core.types import ChatUser, ThreadPost


class Post(BaseModel):
    """A post as returned by the REST API and embedded in `posted` events."""

    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    channel_id: str
    root_id: str = ""
    message: str = ""
    create_at: int = 0

    def to_thread_post(self) -> ThreadPost:
        return ThreadPost(
            id=self.id,
            user_id=self.user_id,
            channel_id=self.channel_id,
            thread_id=self.root_id,
            text=self.message,
            create_at=self.create_at,
        )


class PostList(BaseModel):
    """Thread listing: post ids in `order`, bodies keyed by id in `posts`."""

    model_config = ConfigDict(extra="allow")

    order: list[str] = Field(default_factory=list)
    posts: dict[str, Post] = Field(default_factory=dict)

    def in_fetch_order(self) -> list[Post]:
        """Posts in the order the server listed them."""
        ordered = [self.posts[pid] for pid in self.order if pid in self.posts]
        listed = set(self.order)
        ordered.extend(p for pid, p in self.posts.items() if pid not in listed)
        return ordered


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    username: str
    is_bot: bool = False

    def to_chat_user(self) -> ChatUser:
        return ChatUser(id=self.id, username=self.username, is_bot=self.is_bot)
