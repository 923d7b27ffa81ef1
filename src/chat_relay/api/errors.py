"""Error payloads and exception handlers shared by all relay endpoints.

Every error response has the same body, '{"error": <message>, "code": <code>}'.
Internal failure details are logged but never sent to the client.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from chat_relay.controller import MissingFieldsError, UserNotFoundError


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


class ErrorResponse(BaseModel):
    error: str
    code: ErrorCode


class InternalServerError(Exception):
    """An upstream call failed while serving a request."""


INTERNAL_SERVER_ERROR_MESSAGE = "Internal Server Error"
MALFORMED_BODY_MESSAGE = "Request body is missing or malformed"


def error_response(status_code: int, code: ErrorCode, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code).model_dump(mode="json"),
    )


@contextmanager
def internal_errors(action: str) -> Iterator[None]:
    """Turn any unexpected exception raised while performing 'action' into 'InternalServerError'.

    Validation and not-found errors pass through untouched so their own
    handlers can answer with 400 / 404.
    """
    try:
        yield
    except (MissingFieldsError, UserNotFoundError):
        raise
    except Exception as exc:
        logger.exception(f"Error {action}: {exc}")
        raise InternalServerError(action) from exc


async def _missing_fields_handler(request: Request, exc: MissingFieldsError) -> JSONResponse:
    return error_response(400, ErrorCode.BAD_REQUEST, str(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected body for {request.url.path}: {exc.errors()}")
    return error_response(400, ErrorCode.BAD_REQUEST, MALFORMED_BODY_MESSAGE)


async def _user_not_found_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    return error_response(404, ErrorCode.NOT_FOUND, str(exc))


async def _internal_error_handler(request: Request, exc: InternalServerError) -> JSONResponse:
    return error_response(500, ErrorCode.INTERNAL_ERROR, INTERNAL_SERVER_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MissingFieldsError, _missing_fields_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UserNotFoundError, _user_not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InternalServerError, _internal_error_handler)  # type: ignore[arg-type]
