"""
Pydantic models for server entities.

These mirror the JSON objects returned by the collaboration server's v4 API.
They are transient: each one reflects the server's state at the time of the
call and is never persisted or reconciled locally.

Unknown fields are ignored so that newer servers adding attributes do not
break the client, and every field has a default matching the server's own
zero value.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# STATUS CONSTANTS
# ============================================================================

STATUS_OUT_OF_OFFICE = "ooo"
STATUS_OFFLINE = "offline"
STATUS_AWAY = "away"
STATUS_DND = "dnd"
STATUS_ONLINE = "online"

# Statuses a client may set manually; "ooo" is managed by the server.
SETTABLE_STATUSES = (STATUS_ONLINE, STATUS_AWAY, STATUS_DND, STATUS_OFFLINE)

# Server-side timing constants, in milliseconds.
STATUS_CHANNEL_TIMEOUT = 20_000
STATUS_MIN_UPDATE_TIME = 120_000

# WebSocket event type carrying a newly created post.
EVENT_POSTED = "posted"


class ServerModel(BaseModel):
    """Base for all server entities."""

    model_config = ConfigDict(extra="ignore")


# ============================================================================
# ENTITIES
# ============================================================================


class Team(ServerModel):
    id: str = ""
    name: str = ""
    display_name: str = ""
    type: str = ""
    delete_at: int = 0


class Channel(ServerModel):
    """
    A conversation context inside a team.

    Attributes:
        id: Channel id.
        team_id: Owning team id (empty for direct/group channels).
        name: URL-safe channel name, the part after the colon in "team:channel".
        display_name: Human-readable name.
        type: "O" (public), "P" (private), "D" (direct) or "G" (group).
        delete_at: Archive timestamp in ms, 0 if active.
    """

    id: str = ""
    team_id: str = ""
    name: str = ""
    display_name: str = ""
    type: str = ""
    delete_at: int = 0


class User(ServerModel):
    id: str = ""
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    delete_at: int = 0


class Post(ServerModel):
    """
    A single message.

    Attributes:
        id: Post id, assigned by the server on create.
        create_at: Creation timestamp in ms.
        user_id: Author id.
        channel_id: Channel the post belongs to.
        root_id: Thread root id; empty for top-level posts.
        message: Message text.
    """

    id: str = ""
    create_at: int = 0
    update_at: int = 0
    delete_at: int = 0
    user_id: str = ""
    channel_id: str = ""
    root_id: str = ""
    message: str = ""
    type: str = ""
    props: dict[str, Any] = Field(default_factory=dict)
    hashtags: str = ""
    file_ids: list[str] = Field(default_factory=list)

    def to_create_payload(self) -> dict[str, Any]:
        """Return the body sent when creating this post."""
        payload: dict[str, Any] = {
            "channel_id": self.channel_id,
            "message": self.message,
        }
        if self.root_id:
            payload["root_id"] = self.root_id
        return payload


class PostList(ServerModel):
    """
    A page of posts as returned by the server.

    ``order`` holds post ids newest first; ``posts`` maps id to post and may
    also contain thread parents that are not part of ``order``.
    """

    order: list[str] = Field(default_factory=list)
    posts: dict[str, Post] = Field(default_factory=dict)
    next_post_id: str = ""
    prev_post_id: str = ""

    def to_list(self) -> list[Post]:
        """Return the posts in ``order`` order, skipping ids with no entry."""
        return [self.posts[post_id] for post_id in self.order if post_id in self.posts]


class Status(ServerModel):
    """Presence status of one user."""

    user_id: str = ""
    status: str = ""
    manual: bool = False
    last_activity_at: int = 0
    active_channel: str = ""
    dnd_end_time: int = 0

    def to_public_dict(self) -> dict[str, Any]:
        """Serialise without the user's active channel, which is private."""
        data = self.model_dump()
        data["active_channel"] = ""
        return data


# ============================================================================
# WEBSOCKET EVENTS
# ============================================================================


class WebSocketEvent(ServerModel):
    """
    One server-pushed event.

    Attributes:
        event: Event type, e.g. "posted".
        data: Event payload. For "posted" events ``data["post"]`` is itself a
              JSON-encoded Post.
        broadcast: Delivery scope (channel_id, team_id, user_id, ...).
        seq: Server sequence number of the event on this connection.
    """

    event: str
    data: dict[str, Any] = Field(default_factory=dict)
    broadcast: dict[str, Any] = Field(default_factory=dict)
    seq: int = 0


def post_from_event(event: WebSocketEvent) -> Post:
    """
    Decode the post carried by a "posted" event.

    Raises:
        ValueError: If the event carries no post or the post is not valid JSON.
    """
    raw = event.data.get("post")
    if not isinstance(raw, str) or not raw:
        raise ValueError("event has no post payload")
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid post payload: {e}") from e
    if not isinstance(decoded, dict):
        raise ValueError("invalid post payload: not an object")
    return Post.model_validate(decoded)
