"""
Centralized error handling for API failures.
Domain exceptions carry their HTTP status so routes and services stay thin; handlers are registered once in main.
"""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_INTERNAL_ERROR = 500

MSG_UNAUTHENTICATED = "unauthorized access"
MSG_FORBIDDEN = "forbidden access"
MSG_DEPENDENCY_FAILURE = "Internal server error"


class AppError(Exception):
    """Base for errors that map to a fixed HTTP status."""

    status_code = STATUS_INTERNAL_ERROR
    default_message = MSG_DEPENDENCY_FAILURE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = STATUS_UNAUTHORIZED
    default_message = MSG_UNAUTHENTICATED


class Forbidden(AppError):
    status_code = STATUS_FORBIDDEN
    default_message = MSG_FORBIDDEN


class ValidationError(AppError):
    status_code = STATUS_BAD_REQUEST
    default_message = "Invalid request"


class DependencyFailure(AppError):
    status_code = STATUS_INTERNAL_ERROR
    default_message = MSG_DEPENDENCY_FAILURE


# ---------------------------------------------------------------------------
# Error rules: (exception type, converter). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _store_failure(exc: Exception) -> AppError:
    return DependencyFailure()


ERROR_RULES: list[tuple[type[Exception], Callable[[Exception], AppError]]] = [
    (SQLAlchemyError, _store_failure),
]


def to_app_error(exc: Exception) -> AppError:
    """
    Map any exception to an AppError.
    Known infrastructure errors get a generic message; anything else keeps its own message.
    """
    if isinstance(exc, AppError):
        return exc
    for exc_type, convert in ERROR_RULES:
        if isinstance(exc, exc_type):
            return convert(exc)
    return AppError(str(exc) or MSG_DEPENDENCY_FAILURE)


def _render(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content={"detail": err.message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= STATUS_INTERNAL_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _render(exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed: %s", request.method, request.url.path, exc)
    return _render(to_app_error(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, params and dates are client errors: 400, same shape as ValidationError."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}" for err in exc.errors()
    )
    return _render(ValidationError(problems or None))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, unhandled_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
