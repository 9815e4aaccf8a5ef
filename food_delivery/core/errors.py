"""
Error Taxonomy and JSON Error Envelope

Every failure the API reports maps to one of the classes below. Handlers
and services raise them; the exception handlers registered by
``register_exception_handlers`` render them as:

    {"success": false, "error": "<message>", "detail": <optional>}

Request validation failures are reported with status 400 and a
field-level ``errors`` list. Anything unexpected becomes a generic 500.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationFailed(AppError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Validation failed"


class BusinessRuleViolation(AppError):
    """Well-formed request rejected by a business rule (mixed cart, bad stage)."""
    status_code = 400
    default_message = "Request violates a business rule"


class AuthenticationRequired(AppError):
    status_code = 401
    default_message = "Access token required"


class PermissionDenied(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


def error_body(message: str, detail: Any = None, **extra: Any) -> dict[str, Any]:
    """Build the JSON error envelope."""
    body = {"success": False, "error": message}
    if detail is not None:
        body["detail"] = detail
    body.update(extra)
    return body


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    errors = []
    for err in exc.errors():
        # Drop the "body"/"query"/"path" location prefix
        loc = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({
            "field": ".".join(loc) or str(err.get("loc", ("request",))[0]),
            "message": err.get("msg", "Invalid value"),
        })
    return errors


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Attach the error envelope handlers to the application."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.detail),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", errors=_field_errors(exc)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

        return JSONResponse(
            status_code=500,
            content=error_body(
                "Internal Server Error",
                str(exc) if debug else "An unexpected error occurred",
            ),
        )
