"""Application error taxonomy and the FastAPI handlers that render it.

Services raise :class:`AppError` subclasses; the handlers registered by
:func:`register_exception_handlers` turn them into a uniform JSON body::

    {"status": "fail", "message": "Task not found"}

``fail`` is used for client errors (4xx) and ``error`` for server faults.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for every failure the API reports to its callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went very wrong!"
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        if message is not None:
            self.message = message
        self.extra = extra
        super().__init__(self.message)

    @property
    def status_label(self) -> str:
        return "fail" if self.status_code < 500 else "error"

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status_label, "message": self.message}
        body.update(self.extra)
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input data."


class DuplicateHandle(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already registered"


class InvalidCredentials(AppError):
    # same wording for unknown email and wrong password
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class MissingCredential(Unauthenticated):
    message = "Not authenticated"


class InvalidToken(Unauthenticated):
    message = "Invalid token. Please log in again!"


class ExpiredToken(Unauthenticated):
    message = "Your token has expired! Please log in again."


class NotFound(AppError):
    # same wording whether the task is missing or owned by someone else
    status_code = status.HTTP_404_NOT_FOUND
    message = "Task not found"


class InternalFailure(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went very wrong!"


def _json(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict(), headers=err.headers)


def _describe_validation(exc: RequestValidationError) -> tuple[str, list[dict[str, str]]]:
    errors = []
    for item in exc.errors():
        loc = [str(part) for part in item.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": item.get("msg", "invalid")})
    summary = ". ".join(f"{e['field']}: {e['message']}" for e in errors)
    return f"Invalid input data. {summary}".strip(), errors


def register_exception_handlers(app: FastAPI, *, verbose: bool = False) -> None:
    """Install the handlers mapping errors to structured JSON responses.

    With ``verbose`` (development only) internal failures also carry the
    exception text under ``detail``.
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if isinstance(exc, InternalFailure):
            logger.error("Internal failure on %s %s: %s", request.method, request.url.path, exc)
        return _json(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message, errors = _describe_validation(exc)
        return _json(ValidationError(message, errors=errors))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Cannot find {request.url.path} on this server!"
        else:
            message = str(exc.detail)
        label = "fail" if exc.status_code < 500 else "error"
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": label, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return _json(_internal(exc, verbose))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _json(_internal(exc, verbose))


def _internal(exc: Exception, verbose: bool) -> InternalFailure:
    if verbose:
        return InternalFailure(detail=f"{type(exc).__name__}: {exc}")
    return InternalFailure()
