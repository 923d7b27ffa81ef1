"""
In-memory repositories.

Process-local stand-ins for the PostgreSQL repositories. They honour the same
contracts (duplicate ids are rejected, identifiers and timestamps are assigned
on insert) and are used for local development and as test doubles.
"""

from chat_relay.conversation_database.data_models.chat import ChatDatabase, ChatTurn
from chat_relay.conversation_database.data_models.user import User, UserAlreadyExistsError, UserDatabase
from chat_relay.utils.time import get_current_datetime


class InMemoryUserDatabase(UserDatabase):
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    async def create_user(self, user: User) -> User:
        if user.user_id in self.users:
            raise UserAlreadyExistsError(user.user_id)
        stored = user.model_copy(update={"created_at": get_current_datetime()})
        self.users[stored.user_id] = stored
        return stored

    async def get_user_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)


class InMemoryChatDatabase(ChatDatabase):
    def __init__(self) -> None:
        self.chats: list[ChatTurn] = []

    async def create_chat(self, user_id: str, message: str, reply: str) -> ChatTurn:
        chat = ChatTurn(
            id=len(self.chats) + 1,
            user_id=user_id,
            message=message,
            reply=reply,
            created_at=get_current_datetime(),
        )
        self.chats.append(chat)
        return chat

    async def get_chats_by_user_id(self, user_id: str, limit: int | None = None) -> list[ChatTurn]:
        # Insertion order is chronological order.
        chats = [chat for chat in self.chats if chat.user_id == user_id]
        if limit is not None:
            chats = chats[-limit:] if limit > 0 else []
        return chats
