"""
In-memory 'ChatProvider' that records users, channels and sent messages.

Used for local development without Stream credentials and as a test double;
the recorded state can be inspected after a request.
"""

from typing import Any

from pydantic import BaseModel

from chat_relay.chat_provider.base import Channel, ChatProvider, PresenceUser


class SentMessage(BaseModel):
    channel_id: str
    text: str
    user_id: str


class InMemoryChatProvider(ChatProvider):
    def __init__(self) -> None:
        self.users: dict[str, PresenceUser] = {}
        self.channels: dict[tuple[str, str], Channel] = {}
        self.messages: list[SentMessage] = []

    async def query_users(self, user_id: str) -> list[PresenceUser]:
        user = self.users.get(user_id)
        return [user] if user is not None else []

    async def upsert_user(self, user_id: str, name: str, email: str, role: str = "user") -> None:
        self.users[user_id] = PresenceUser(id=user_id, name=name, email=email, role=role)

    async def ensure_channel(self, channel_type: str, channel_id: str, data: dict[str, Any]) -> Channel:
        key = (channel_type, channel_id)
        if key not in self.channels:
            self.channels[key] = Channel(channel_type=channel_type, channel_id=channel_id, data=data)
        return self.channels[key]

    async def send_message(self, channel: Channel, text: str, user_id: str) -> None:
        if (channel.channel_type, channel.channel_id) not in self.channels:
            raise ValueError(f"Channel {channel.channel_type}:{channel.channel_id} does not exist")
        self.messages.append(SentMessage(channel_id=channel.channel_id, text=text, user_id=user_id))
