"""
Core LLM abstractions and message data models.

The completion provider is reached through the 'LLM' ABC. The shared message
format ('LLMMessage') is backend-agnostic so the controller never needs to
know which completion API is in use, and tests can plug in a scripted LLM.
"""

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel


class Roles(StrEnum):
    """Conversation roles as used by the OpenAI chat completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A single message in a conversation sent to or received from an LLM.

    An empty 'content' on a generated message means the provider returned no
    text.
    """

    content: str = ""
    role: Roles = Roles.ASSISTANT


class LLM(ABC):
    """
    Abstract base class for language model backends.

    One call is one request/response round trip: implementations do not retry
    and do not stream. Provider failures (timeouts, quota, malformed payloads)
    propagate to the caller as exceptions.
    """

    @abstractmethod
    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        """Return a single complete response for the given conversation."""
        pass

    async def close(self) -> None:
        return None
