"""
Stream Chat implementation of 'ChatProvider'.

Wraps the asynchronous client of the official 'stream-chat' SDK. The client is
created on first use (its HTTP session needs a running event loop), reused for
the lifetime of the process, and authenticates with the server-side API key and
secret, which allows creating users and posting messages on their behalf.
"""

from typing import Any

from loguru import logger
from stream_chat import StreamChatAsync

from chat_relay.chat_provider.base import Channel, ChatProvider, PresenceUser


class StreamChatProvider(ChatProvider):
    def __init__(self, api_key: str, api_secret: str, client: StreamChatAsync | None = None):
        self.api_key = api_key
        self.api_secret = api_secret
        self._client = client

    @property
    def client(self) -> StreamChatAsync:
        if self._client is None:
            self._client = StreamChatAsync(api_key=self.api_key, api_secret=self.api_secret)
        return self._client

    async def query_users(self, user_id: str) -> list[PresenceUser]:
        response = await self.client.query_users({"id": {"$eq": user_id}})
        users = response["users"]
        logger.debug(f"Stream Chat returned {len(users)} user(s) for {user_id!r}")
        return [
            PresenceUser(
                id=user["id"],
                name=user.get("name"),
                email=user.get("email"),
                role=user.get("role", "user"),
            )
            for user in users
        ]

    async def upsert_user(self, user_id: str, name: str, email: str, role: str = "user") -> None:
        await self.client.upsert_user({"id": user_id, "name": name, "email": email, "role": role})
        logger.debug(f"Upserted Stream Chat user {user_id!r}")

    async def ensure_channel(self, channel_type: str, channel_id: str, data: dict[str, Any]) -> Channel:
        channel = self.client.channel(channel_type, channel_id, data)
        # Creating an existing channel is a no-op on Stream's side.
        await channel.create(data["created_by_id"])
        return Channel(channel_type=channel_type, channel_id=channel_id, data=data)

    async def send_message(self, channel: Channel, text: str, user_id: str) -> None:
        stream_channel = self.client.channel(channel.channel_type, channel.channel_id)
        await stream_channel.send_message({"text": text}, user_id)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
