"""
FastAPI application factory.

The controller and every client it depends on are created by the caller and
handed to 'create_app', so tests can build the app around in-memory gateways
and a scripted LLM. 'on_startup' callbacks run before the first request is
served. Shutdown closes the controller's clients and then runs the extra
'on_shutdown' callbacks (e.g. disposing the database engine).
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from chat_relay.api.errors import register_error_handlers
from chat_relay.api.routes import router
from chat_relay.controller import ChatRelayController


def create_app(
    controller: ChatRelayController,
    on_startup: Sequence[Callable[[], Awaitable[None]]] = (),
    on_shutdown: Sequence[Callable[[], Awaitable[None]]] = (),
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        for callback in on_startup:
            await callback()
        yield
        logger.info("Shutting down, closing external clients")
        try:
            await controller.close()
        finally:
            for callback in on_shutdown:
                await callback()

    app = FastAPI(title="Chat Relay", lifespan=lifespan)
    app.state.controller = controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app
