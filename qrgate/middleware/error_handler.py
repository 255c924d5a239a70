# qrgate/middleware/error_handler.py
# Structured error handling middleware
# Domain errors carry their own HTTP status; everything else becomes a 500

import traceback
import logging
from typing import Callable
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from qrgate.constants import NO_STORE_HEADERS
from qrgate.observability.logger import log_exception

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error with structured response."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class ValidationFailedError(AppError):
    """A required field is missing or empty."""
    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_FAILED",
            status_code=400,
            details=details
        )


class NotPersistableError(AppError):
    """Only dynamic codes are stored; static codes stay client-side."""
    def __init__(self, kind: str = "static"):
        super().__init__(
            message="Static QR codes are not stored; download the image instead",
            error_code="NOT_PERSISTABLE",
            status_code=400,
            details={"kind": kind}
        )


class NotFoundError(AppError):
    """Unknown or deleted record id."""
    def __init__(self, record_id: str = None):
        super().__init__(
            message="QR code not found",
            error_code="NOT_FOUND",
            status_code=404,
            details={"id": record_id} if record_id else None
        )


class ExpiredError(AppError):
    """Valid id whose expiry has lapsed."""
    def __init__(self, record_id: str = None):
        super().__init__(
            message="QR code has expired",
            error_code="EXPIRED",
            status_code=410,
            details={"id": record_id} if record_id else None
        )


class EmptyContentError(AppError):
    """Stored record has nothing to resolve to."""
    def __init__(self, record_id: str = None):
        super().__init__(
            message="QR code content is empty",
            error_code="EMPTY_CONTENT",
            status_code=400,
            details={"id": record_id} if record_id else None
        )


class StorageError(AppError):
    """The record store could not be read or written."""
    def __init__(self, message: str = "Record store unavailable", details: dict = None):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=503,
            details=details
        )


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: dict = None,
    request_id: str = None
) -> JSONResponse:
    """Create a standardized JSON error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    if request_id:
        content["error"]["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=NO_STORE_HEADERS,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and returns
    consistent JSON error responses.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID", str(id(request)))

        try:
            response = await call_next(request)
            return response

        except AppError as e:
            logger.warning(
                f"AppError: {e.error_code} - {e.message}",
                extra={"request_id": request_id, "path": request.url.path}
            )
            return create_error_response(
                error_code=e.error_code,
                message=e.message,
                status_code=e.status_code,
                details=e.details,
                request_id=request_id
            )

        except Exception as e:
            error_details = None
            if self.debug:
                error_details = {
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            log_exception(e, context=f"Unhandled error on {request.url.path}")
            logger.error(
                f"Unhandled exception: {type(e).__name__}: {str(e)}",
                extra={"request_id": request_id, "path": request.url.path},
                exc_info=True
            )

            return create_error_response(
                error_code="INTERNAL_ERROR",
                message="An internal error occurred. Please try again later.",
                status_code=500,
                details=error_details,
                request_id=request_id
            )


def setup_exception_handlers(app):
    """Register exception handlers on FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return create_error_response(
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # pydantic errors may carry the offending exception in ctx
        errors = [
            {k: v for k, v in err.items() if k in ("loc", "msg", "type")}
            for err in exc.errors()
        ]
        return create_error_response(
            error_code="VALIDATION_FAILED",
            message="Request validation failed",
            status_code=400,
            details={"errors": errors}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # unknown routes and wrong methods get the same envelope
        return create_error_response(
            error_code="HTTP_ERROR",
            message=str(exc.detail),
            status_code=exc.status_code,
        )
