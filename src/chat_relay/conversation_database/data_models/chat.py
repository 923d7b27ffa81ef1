"""
Chat turn data model and storage interface.

A 'ChatTurn' is one user message together with the assistant reply generated
for it. Turns form an append-only log per user: they are never modified after
insertion and are always read back filtered by 'user_id'.

Concrete implementations: 'InMemoryChatDatabase', 'PostgreSQLChatDatabase'.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ChatTurn(BaseModel):
    """
    A single persisted (message, reply) pair.

    'id' and 'created_at' are assigned by the store. 'user_id' references a
    'User' but the reference is only checked by the controller before insert.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    user_id: str
    message: str
    reply: str
    created_at: datetime


class ChatDatabase(ABC):
    """Abstract repository for 'ChatTurn' records."""

    @abstractmethod
    async def create_chat(self, user_id: str, message: str, reply: str) -> ChatTurn:
        pass

    @abstractmethod
    async def get_chats_by_user_id(self, user_id: str, limit: int | None = None) -> list[ChatTurn]:
        """Return the turns of 'user_id' in chronological order.

        With 'limit', only the most recent 'limit' turns are returned, still
        oldest first.
        """
        pass
