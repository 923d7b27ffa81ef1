"""
HTTP routes of the relay.

All relay endpoints are JSON 'POST' requests. Request fields are optional at
the schema level so that missing fields reach the controller and are reported
as 400 with a readable message instead of a schema error.
"""

from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_relay.api.errors import internal_errors
from chat_relay.controller import (
    ChatHistory,
    ChatRelayController,
    ChatReply,
    MissingFieldsError,
    RegisteredUser,
    UserCheck,
)


class _RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterUserRequest(_RequestBody):
    name: str | None = None
    email: str | None = None


class UserIdRequest(_RequestBody):
    user_id: str | None = None


class ChatRequest(_RequestBody):
    message: str | None = None
    user_id: str | None = None


RequestBody = TypeVar("RequestBody", bound=_RequestBody)


def get_controller(request: Request) -> ChatRelayController:
    return request.app.state.controller


Controller = Annotated[ChatRelayController, Depends(get_controller)]

router = APIRouter()


def _require_body(body: RequestBody | None) -> RequestBody:
    if body is None:
        raise MissingFieldsError("Request body is missing")
    return body


@router.post("/register-user")
async def register_user(controller: Controller, body: RegisterUserRequest | None = None) -> RegisteredUser:
    body = _require_body(body)
    with internal_errors("registering user"):
        return await controller.register_user(body.name, body.email)


@router.post("/check-user")
async def check_user(controller: Controller, body: UserIdRequest | None = None) -> UserCheck:
    body = _require_body(body)
    with internal_errors("checking user"):
        return await controller.check_user(body.user_id)


@router.post("/chat")
async def chat(controller: Controller, body: ChatRequest | None = None) -> ChatReply:
    body = _require_body(body)
    with internal_errors("generating AI response"):
        return await controller.chat(body.user_id, body.message)


@router.post("/get-messages")
async def get_messages(controller: Controller, body: UserIdRequest | None = None) -> ChatHistory:
    body = _require_body(body)
    with internal_errors("fetching chat history"):
        return await controller.get_messages(body.user_id)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
