"""
Error handling for the HTTP surface.

Maps access-control and persistence failures onto a single JSON error
envelope and keeps credentials out of messages.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.hierarchy.errors import AccessDenied, AuthorizationError, ResourceNotFound

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'postgres(?:ql)?(?:\+\w+)?://[^\s"]+', re.IGNORECASE),
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def error_body(
    request_path: str,
    request_method: str,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> dict[str, Any]:
    body = {
        "error": {
            "code": code,
            "message": message,
            "path": request_path,
            "method": request_method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    return body


def authorization_error_response(
    exc: AuthorizationError, path: str, method: str
) -> JSONResponse:
    details = None
    if isinstance(exc, AccessDenied) and exc.denied_ids:
        details = {"denied_ids": exc.denied_ids}
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=error_body(path, method, exc.code, sanitize_error_message(exc.message), details),
    )


class ErrorHandlingMiddleware:
    """
    ASGI guard that converts escaped exceptions to JSON.

    Exceptions with registered handlers (see ``setup_error_handlers``) never
    reach this middleware; it covers database failures and anything raised
    from other middleware.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        if isinstance(exc, AuthorizationError):
            logger.warning(f"Access denied: {request_method} {request_path} - {exc.message}")
            return authorization_error_response(exc, request_path, request_method)

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"

        if isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            error_code = "INTEGRITY_ERROR"
            message = "Database integrity constraint violated"
            logger.error(f"Database integrity error: {request_method} {request_path}")

        elif isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            error_code = "DATABASE_ERROR"
            message = "Database service temporarily unavailable"
            logger.error(
                f"Database operational error: {request_method} {request_path}",
                exc_info=True,
            )

        elif isinstance(exc, SQLAlchemyError):
            error_code = "DATABASE_ERROR"
            message = "A database error occurred"
            logger.error(f"SQLAlchemy error: {request_method} {request_path}", exc_info=True)

        elif isinstance(exc, ResourceNotFound):
            status_code = status.HTTP_404_NOT_FOUND
            error_code = "NOT_FOUND"
            message = str(exc)

        elif isinstance(exc, ValueError):
            status_code = status.HTTP_400_BAD_REQUEST
            error_code = "INVALID_INPUT"
            message = sanitize_error_message(exc) or "Invalid input provided"
            logger.warning(f"Value error: {request_method} {request_path} - {message}")

        else:
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(exc)}",
                exc_info=True,
            )

        details = None
        if self.debug and status_code >= 500:
            details = {
                "type": type(exc).__name__,
                "message": sanitize_error_message(exc),
                "traceback": traceback.format_exc(),
            }

        return JSONResponse(
            status_code=status_code,
            content=error_body(request_path, request_method, error_code, message, details),
        )


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                str(request.url.path),
                request.method,
                "HTTP_EXCEPTION",
                sanitize_error_message(exc.detail),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": sanitize_error_message(error["msg"]),
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                str(request.url.path),
                request.method,
                "VALIDATION_ERROR",
                "Request validation failed",
                errors,
            ),
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_exception_handler(request: Request, exc: AuthorizationError):
        logger.warning(
            f"Access denied: {request.method} {request.url.path} - "
            f"user={exc.user_id} code={exc.code}"
        )
        return authorization_error_response(exc, str(request.url.path), request.method)

    @app.exception_handler(ResourceNotFound)
    async def not_found_handler(request: Request, exc: ResourceNotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_body(str(request.url.path), request.method, "NOT_FOUND", str(exc)),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = sanitize_error_message(exc) or "Invalid input provided"
        logger.warning(f"Value error: {request.method} {request.url.path} - {message}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(str(request.url.path), request.method, "INVALID_INPUT", message),
        )
