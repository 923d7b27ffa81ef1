"""
OpenAI chat completions backend.
"""

from typing import Any

from loguru import logger
from openai import AsyncOpenAI

from chat_relay.llms.base import LLM, LLMMessage, Roles

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"


class OpenAILLM(LLM):
    """
    'LLM' backed by the OpenAI chat completions endpoint.

    Attributes:
        model_name: Model to query, e.g. 'gpt-3.5-turbo' or 'gpt-4o-mini'.
        temperature: Sampling temperature. Left to the API default when None.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_OPENAI_MODEL,
        temperature: float | None = None,
        openai_api_key: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model_name = model_name
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=openai_api_key)

    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        options: dict[str, Any] = {}
        if self.temperature is not None:
            options["temperature"] = self.temperature

        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": message.role.value, "content": message.content} for message in conversation],
            **options,
        )
        content = completion.choices[0].message.content
        logger.debug(f"OpenAI {self.model_name} answered {len(conversation)} message(s) with {len(content or '')} chars")
        return LLMMessage(role=Roles.ASSISTANT, content=content or "")

    async def close(self) -> None:
        await self.client.close()
