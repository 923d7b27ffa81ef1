from chat_relay.chat_provider.base import Channel, ChatProvider, PresenceUser
from chat_relay.chat_provider.in_memory import InMemoryChatProvider

__all__ = ["Channel", "ChatProvider", "InMemoryChatProvider", "PresenceUser"]
