"""
Presence provider abstractions.

The presence provider is the external chat service (Stream Chat in production)
that keeps its own copy of each user and delivers assistant replies into a
per-user channel. The relay only needs four operations from it, captured by
the 'ChatProvider' ABC so the controller never depends on a vendor SDK.

Concrete implementations: 'StreamChatProvider', 'InMemoryChatProvider'.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class PresenceUser(BaseModel):
    """A user record as held by the presence provider."""

    id: str
    name: str | None = None
    email: str | None = None
    role: str = "user"


class Channel(BaseModel):
    """Handle to a messaging channel, addressed by type and id."""

    channel_type: str
    channel_id: str
    data: dict[str, Any] = Field(default_factory=dict)


class ChatProvider(ABC):
    """
    Abstract base class for presence / messaging backends.

    'upsert_user' and 'ensure_channel' are expected to be idempotent on the
    provider side, so callers may repeat them safely.
    """

    @abstractmethod
    async def query_users(self, user_id: str) -> list[PresenceUser]:
        """Return the presence records whose id equals 'user_id' (zero or one in practice)."""
        pass

    @abstractmethod
    async def upsert_user(self, user_id: str, name: str, email: str, role: str = "user") -> None:
        pass

    @abstractmethod
    async def ensure_channel(self, channel_type: str, channel_id: str, data: dict[str, Any]) -> Channel:
        """Create the channel if it does not exist yet and return a handle to it.

        'data' must carry 'created_by_id', the identity that owns the channel.
        """
        pass

    @abstractmethod
    async def send_message(self, channel: Channel, text: str, user_id: str) -> None:
        pass

    async def close(self) -> None:
        """Release network resources held by the provider client."""
        return None
