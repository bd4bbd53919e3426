"""Error taxonomy and exception handlers.

Every failure leaving a route is rendered as:

    {"error": {"code": "...", "message": "...", "details": {...}}}

Status mapping:
  AuthError        → 401
  ValidationError  → 400   (also FastAPI/pydantic request validation)
  NotFoundError    → 404
  StorageError     → 500   (also any SQLAlchemyError)
"""

import logging
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class HerbTraceError(Exception):
    """Base exception for HerbTrace application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Union[dict, None] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class AuthError(HerbTraceError):
    """No session, or the session's token is invalid, expired or revoked."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_ERROR",
        )


class ValidationError(HerbTraceError):
    """A required field is missing or malformed."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details={"fields": fields} if fields else None,
        )
        self.fields = fields or []


class NotFoundError(HerbTraceError):
    """A referenced record does not exist."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND",
            details={"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class StorageError(HerbTraceError):
    """The persistence layer failed; the request wrote nothing."""

    def __init__(self, message: str = "Storage failure. Please try again later."):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="STORAGE_ERROR",
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Create the standard error envelope."""
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_name(loc: tuple) -> str:
    # ("body", "location", "lat") → "location.lat"
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"


def _error_field(error: dict) -> str:
    # json_invalid carries a character offset, not a field, in its loc
    if error["type"] == "json_invalid":
        return "body"
    return _field_name(error["loc"])


def validation_error_from_pydantic(errors: list[dict]) -> ValidationError:
    """Collapse pydantic error dicts into one ValidationError naming the fields."""
    missing = [_error_field(e) for e in errors if e["type"] == "missing"]
    invalid = [_error_field(e) for e in errors if e["type"] != "missing"]

    parts = []
    if missing:
        parts.append(f"Missing required field(s): {', '.join(missing)}")
    if invalid:
        parts.append(f"Invalid value for field(s): {', '.join(invalid)}")
    return ValidationError("; ".join(parts) or "Invalid request", fields=missing + invalid)


async def herbtrace_exception_handler(
    request: Request,
    exc: HerbTraceError,
) -> JSONResponse:
    """Handle HerbTrace domain exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.error_code, "path": request.url.path},
        exc_info=exc.status_code >= 500,
    )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        headers=headers,
    )


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions (e.g. the bearer scheme's own 401)."""
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={"path": request.url.path, "method": request.method},
        )

    error_code = "AUTH_ERROR" if exc.status_code == 401 else f"HTTP_{exc.status_code}"
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=error_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, PydanticValidationError],
) -> JSONResponse:
    """Map request validation failures to a 400 ValidationError."""
    error = validation_error_from_pydantic(exc.errors())
    logger.warning(
        f"Validation error on {request.url.path}: {error.message}",
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(
        status_code=error.status_code,
        message=error.message,
        error_code=error.error_code,
        details=error.details,
    )


async def storage_exception_handler(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    """Any database failure that escaped a service surfaces as StorageError."""
    logger.error(
        f"Database error on {request.url.path}: {exc}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )
    error = StorageError()
    return create_error_response(
        status_code=error.status_code,
        message=error.message,
        error_code=error.error_code,
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(HerbTraceError, herbtrace_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
