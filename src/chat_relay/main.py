"""
Process entry point.

Builds the database, Stream Chat and OpenAI clients from the environment,
wires them into the controller and serves the API with uvicorn:

    python -m chat_relay.main

See 'chat_relay.settings' for the recognised environment variables.
"""

import sys

import uvicorn
from fastapi import FastAPI
from loguru import logger

from chat_relay.api.server import create_app
from chat_relay.chat_provider.stream import StreamChatProvider
from chat_relay.controller import ChatRelayController
from chat_relay.conversation_database.postgresql import (
    PostgreSQLChatDatabase,
    PostgreSQLConnection,
    PostgreSQLUserDatabase,
)
from chat_relay.llms.openai import OpenAILLM
from chat_relay.settings import Settings, get_settings


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_app(settings: Settings) -> FastAPI:
    connection = PostgreSQLConnection(settings.database_url)
    controller = ChatRelayController(
        user_db=PostgreSQLUserDatabase(connection.session_factory),
        chat_db=PostgreSQLChatDatabase(connection.session_factory),
        chat_provider=StreamChatProvider(settings.stream_api_key, settings.stream_api_secret),
        llm=OpenAILLM(model_name=settings.openai_model, openai_api_key=settings.openai_api_key),
    )
    return create_app(controller, on_startup=[connection.create_tables], on_shutdown=[connection.close])


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = build_app(settings)
    logger.info(f"Server is running on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
