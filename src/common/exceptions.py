# src/common/exceptions.py
"""Typed errors raised by resource access functions and mapped to HTTP responses."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    status_code: int = 500
    default_message: str = GlobalMessages.INTERNAL_ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = 401
    default_message = GlobalMessages.UNAUTHORIZED


class Forbidden(AppError):
    status_code = 403
    default_message = GlobalMessages.FORBIDDEN


class NotFound(AppError):
    status_code = 404
    default_message = GlobalMessages.NOT_FOUND


class ValidationFailed(AppError):
    status_code = 400
    default_message = GlobalMessages.INVALID_REQUEST


class Conflict(AppError):
    status_code = 400
    default_message = GlobalMessages.ACCOUNT_ALREADY_EXISTS


class RateLimited(AppError):
    status_code = 429
    default_message = GlobalMessages.RATE_LIMITED


class UpstreamError(AppError):
    """An external provider (storage, LLM, database) failed.

    The message passed in is for the server log only; clients always receive
    the generic default message.
    """
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(None)
        self.detail = message


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return GlobalMessages.INVALID_REQUEST
    first = errors[0]
    message = str(first.get("msg") or GlobalMessages.INVALID_REQUEST)
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``; internals stay in the logs."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, UpstreamError):
            logger.error("upstream_error", path=request.url.path, detail=exc.detail, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": GlobalMessages.INTERNAL_ERROR})
