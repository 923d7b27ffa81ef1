"""Shared fixtures: in-memory gateways, a scripted LLM and an HTTP client around them."""

import pytest
from fastapi.testclient import TestClient

from chat_relay.api.server import create_app
from chat_relay.chat_provider.in_memory import InMemoryChatProvider
from chat_relay.controller import ChatRelayController
from chat_relay.conversation_database.in_memory import InMemoryChatDatabase, InMemoryUserDatabase
from tests.helpers import ScriptedLLM


@pytest.fixture
def user_db() -> InMemoryUserDatabase:
    return InMemoryUserDatabase()


@pytest.fixture
def chat_db() -> InMemoryChatDatabase:
    return InMemoryChatDatabase()


@pytest.fixture
def chat_provider() -> InMemoryChatProvider:
    return InMemoryChatProvider()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def controller(user_db, chat_db, chat_provider, llm) -> ChatRelayController:
    return ChatRelayController(user_db=user_db, chat_db=chat_db, chat_provider=chat_provider, llm=llm)


@pytest.fixture
def client(controller) -> TestClient:
    return TestClient(create_app(controller))
