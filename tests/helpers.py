"""Test doubles shared by the test modules."""

from chat_relay.chat_provider.in_memory import InMemoryChatProvider
from chat_relay.llms.base import LLM, LLMMessage, Roles


class ScriptedLLM(LLM):
    """Answers every conversation with 'reply' and records what it was sent."""

    def __init__(self, reply: str = "Hi there", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.conversations: list[list[LLMMessage]] = []
        self.closed = False

    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        self.conversations.append(list(conversation))
        if self.error is not None:
            raise self.error
        return LLMMessage(role=Roles.ASSISTANT, content=self.reply)

    async def close(self) -> None:
        self.closed = True


class FailingCloseChatProvider(InMemoryChatProvider):
    """In-memory provider whose 'close' fails, as when the HTTP session is already gone."""

    async def close(self) -> None:
        raise ConnectionError("stream session already gone")
