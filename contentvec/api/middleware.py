"""API middleware: CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``ContentVecError`` subclasses into JSON ``ErrorResponse``
bodies with the matching HTTP status.

# ─── MIDDLEWARE EXECUTION ORDER (Junior Developer Guide) ───────────────
#
# Starlette middleware is a stack (LIFO: last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd → outermost
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# So RequestLoggingMiddleware sees the *final* response status code
# (even after ErrorHandling converted an exception into a JSON error).
#
# ERROR → STATUS MAP
#   ValidationError (and subclasses)        400
#   NotFoundError                           404
#   ConflictError                           409
#   ProviderRateLimitedError                429
#   ProviderError / Unauthenticated         502
#   any other ContentVecError               500
#   unexpected exception                    500, generic detail
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from contentvec.api.schemas import ErrorResponse
from contentvec.utils.errors import (
    ConflictError,
    ContentVecError,
    NoFieldsConfiguredError,
    NotFoundError,
    ProviderError,
    ProviderRateLimitedError,
    ValidationError,
)
from contentvec.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Checked in order; the first matching class wins, so subclasses precede bases.
_STATUS_MAP: list[tuple[type[ContentVecError], int]] = [
    (ValidationError, 400),
    (NoFieldsConfiguredError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ProviderRateLimitedError, 429),
    (ProviderError, 502),
]


def status_for(exc: ContentVecError) -> int:
    """Return the HTTP status code for a domain error."""
    for error_type, status_code in _STATUS_MAP:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_response(exc: ContentVecError) -> JSONResponse:
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        field=getattr(exc, "field", None),
    )
    return JSONResponse(status_code=status_for(exc), content=body.model_dump())


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to ``["*"]`` for development."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert exceptions escaping a route into structured JSON errors.

    Stack traces are logged server-side only: never leaked to the client.
    Unexpected (non-domain) exceptions get a generic 500 detail.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ContentVecError as exc:
            status_code = status_for(exc)
            log = _logger.error if status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status_code,
                path=str(request.url.path),
            )
            return error_response(exc)
        except Exception as exc:  # noqa: BLE001
            _logger.exception(
                "unhandled_error",
                error_type=type(exc).__name__,
                path=str(request.url.path),
            )
            body = ErrorResponse(error="InternalServerError", detail="Internal server error")
            return JSONResponse(status_code=500, content=body.model_dump())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    body = ErrorResponse(
        error="ValidationError",
        detail=first.get("msg", "Invalid request"),
        field=".".join(location) or None,
    )
    return JSONResponse(status_code=400, content=body.model_dump())


def configure_error_handling(app: FastAPI) -> None:
    """Install the error middleware and map request-parsing errors to 400."""
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_middleware(ErrorHandlingMiddleware)
