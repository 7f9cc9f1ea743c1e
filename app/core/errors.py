"""Application error hierarchy and FastAPI exception handlers.

Services and repositories raise ``AppError`` subclasses carrying a stable
string code; the handlers registered in ``app.main`` turn them into the
``{success: false, error: {code, message, details?}}`` envelope.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error: the message is safe to show to API clients."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.is_operational = True


class ValidationError(AppError):
    def __init__(self, message: str, details: Optional[list[dict]] = None, code: str = "VALIDATION_ERROR"):
        super().__init__(message, 400, code, details or [])


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication failed", code: str = "AUTHENTICATION_ERROR"):
        super().__init__(message, 401, code)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Insufficient permissions", code: str = "AUTHORIZATION_ERROR"):
        super().__init__(message, 403, code)


class NotFoundError(AppError):
    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message, 404, code)


class ConflictError(AppError):
    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Any] = None):
        super().__init__(message, 409, code, details)


class AccountLockedError(AppError):
    def __init__(self, message: str = "Account is temporarily locked due to too many failed login attempts"):
        super().__init__(message, 423, "ACCOUNT_LOCKED")


class DatabaseError(AppError):
    def __init__(self, message: str, original: Optional[Exception] = None):
        super().__init__(message, 500, "DATABASE_ERROR")
        self.original = original


def _error_body(code: str, message: str, details: Optional[Any] = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body("VALIDATION_ERROR", "Invalid input data", details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(f"HTTP_{exc.status_code}", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Programming errors: log the traceback, hide the message in production."""
    logger.exception("Unhandled exception: %s %s", request.method, request.url.path)
    message = "Something went wrong" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content=_error_body("INTERNAL_ERROR", message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
