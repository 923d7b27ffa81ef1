"""
Chat relay controller (Facade).

'ChatRelayController' is the single entry point for the application logic.
It coordinates the two repositories ('UserDatabase', 'ChatDatabase'), the
presence provider and the completion LLM to serve the four relay operations:

    'register_user' - mirror a user into the presence provider and the database.
    'check_user'    - look a user up in the database.
    'chat'          - answer a message with the LLM, persist the turn and
                      deliver the reply into the user's channel.
    'get_messages'  - return the stored turns of a user.

The two user stores are not transactionally linked. Every write is guarded by
an existence check, so repeating 'register_user' converges both stores after
a partial failure, but nothing is rolled back when a later step fails.

The response models defined here are the JSON payloads returned by the API
layer; they serialize with camelCase keys.
"""

import asyncio
from collections.abc import Sequence
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_relay.chat_provider.base import ChatProvider
from chat_relay.conversation_database.data_models.chat import ChatDatabase, ChatTurn
from chat_relay.conversation_database.data_models.user import User, UserDatabase
from chat_relay.llms.base import LLM, LLMMessage, Roles
from chat_relay.utils.user_id import derive_user_id

HISTORY_LIMIT = 10
AI_RESPONSE_NOT_FOUND = "AI response not found."

AI_BOT_USER_ID = "ai_bot"
CHANNEL_TYPE = "messaging"
CHANNEL_NAME = "Cortexa"


class MissingFieldsError(Exception):
    """A required request field is absent or empty."""


class UserNotFoundError(Exception):
    """The referenced user is missing from the presence provider or the database."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisteredUser(_CamelModel):
    user_id: str
    name: str
    email: str


class UserCheck(_CamelModel):
    user_id: str
    existing_user: list[User]


class ChatReply(_CamelModel):
    status: Literal["success"] = "success"
    reply: str


class ChatHistory(_CamelModel):
    messages: list[ChatTurn]


def channel_id_for(user_id: str) -> str:
    return f"chat-{user_id}"


def build_conversation(history: Sequence[ChatTurn], message: str) -> list[LLMMessage]:
    """Flatten stored turns into a transcript and append the new user message.

    For N turns the result has 2N + 1 entries: each turn contributes its
    message (user role) followed by its reply (assistant role).
    """
    conversation: list[LLMMessage] = []
    for chat in history:
        conversation.append(LLMMessage(role=Roles.USER, content=chat.message))
        conversation.append(LLMMessage(role=Roles.ASSISTANT, content=chat.reply))
    conversation.append(LLMMessage(role=Roles.USER, content=message))
    return conversation


class ChatRelayController:
    def __init__(
        self,
        user_db: UserDatabase,
        chat_db: ChatDatabase,
        chat_provider: ChatProvider,
        llm: LLM,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.user_db = user_db
        self.chat_db = chat_db
        self.chat_provider = chat_provider
        self.llm = llm
        self.history_limit = history_limit

    async def register_user(self, name: str | None, email: str | None) -> RegisteredUser:
        if not name or not email:
            raise MissingFieldsError("Name and email are required.")

        user_id = derive_user_id(email)

        if not await self.chat_provider.query_users(user_id):
            await self.chat_provider.upsert_user(user_id, name, email, role="user")
            logger.info(f"Added user {user_id} to the chat provider")

        if await self.user_db.get_user_by_id(user_id) is None:
            logger.info(f"User {user_id} does not exist in the database. Adding them...")
            await self.user_db.create_user(User(user_id=user_id, name=name, email=email))

        return RegisteredUser(user_id=user_id, name=name, email=email)

    async def check_user(self, user_id: str | None) -> UserCheck:
        if not user_id:
            raise MissingFieldsError("User ID is required")

        user = await self.user_db.get_user_by_id(user_id)
        return UserCheck(user_id=user_id, existing_user=[user] if user is not None else [])

    async def chat(self, user_id: str | None, message: str | None) -> ChatReply:
        if not message or not user_id:
            raise MissingFieldsError("Message and user id are required")

        presence_users, user = await asyncio.gather(
            self.chat_provider.query_users(user_id),
            self.user_db.get_user_by_id(user_id),
        )
        if not presence_users:
            raise UserNotFoundError("User not found. Please register first.")
        if user is None:
            raise UserNotFoundError("User not found in database. Please register first!")

        history = await self.chat_db.get_chats_by_user_id(user_id, limit=self.history_limit)
        conversation = build_conversation(history, message)

        answer = await self.llm.generate(conversation)
        reply = answer.content or AI_RESPONSE_NOT_FOUND

        await self.chat_db.create_chat(user_id, message, reply)

        channel = await self.chat_provider.ensure_channel(
            CHANNEL_TYPE,
            channel_id_for(user_id),
            {"name": CHANNEL_NAME, "created_by_id": AI_BOT_USER_ID},
        )
        await self.chat_provider.send_message(channel, reply, AI_BOT_USER_ID)

        logger.info(f"Answered {user_id} using {len(history)} previous turn(s)")
        return ChatReply(reply=reply)

    async def get_messages(self, user_id: str | None) -> ChatHistory:
        if not user_id:
            raise MissingFieldsError("User ID is required")

        return ChatHistory(messages=await self.chat_db.get_chats_by_user_id(user_id))

    async def close(self) -> None:
        try:
            await self.chat_provider.close()
        finally:
            await self.llm.close()
