"""HTTP middleware for the docflow API.

* :class:`RequestLoggingMiddleware` gives every request an id, binds it
  to the structlog context (so pipeline lines logged during a synchronous
  upload carry it next to ``document_id``), echoes it as ``X-Request-ID``
  and logs one ``http_request`` line per request.
* :class:`ErrorHandlingMiddleware` turns ``DocflowError`` subclasses into
  :class:`ErrorResponse` bodies with the status from :func:`status_code_for`.
* :func:`configure_cors` opens the API to browser clients.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (LIFO -- last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st -> inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd -> outer
#
#   Request flow:
#     Client -> RequestLogging -> ErrorHandling -> route handler
#
# So RequestLoggingMiddleware sees the *final* response status code
# (even after ErrorHandling replaced an exception with a JSON error).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docflow.api.schemas import ErrorResponse
from docflow.utils.errors import (
    ConfigurationError,
    DocflowError,
    ExtractionFailedError,
    IngestionError,
    ProcessingCancelledError,
    StageTimeoutError,
    UnsupportedFileTypeError,
)
from docflow.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Most specific first.
_STATUS_CODES: list[tuple[type[DocflowError], int]] = [
    (ConfigurationError, 400),
    (UnsupportedFileTypeError, 415),
    (ExtractionFailedError, 422),
    (ProcessingCancelledError, 409),
    (StageTimeoutError, 504),
]


def status_code_for(exc: DocflowError) -> int:
    """Map a docflow exception to the HTTP status returned to clients."""
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 500


def error_response(exc: DocflowError) -> JSONResponse:
    """Render *exc* as a sanitized JSON error body."""
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        code=exc.code if isinstance(exc, IngestionError) else None,
        retryable=exc.retryable if isinstance(exc, IngestionError) else None,
    )
    return JSONResponse(status_code=status_code_for(exc), content=body.model_dump())


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Defaults to ``["*"]`` for development; pass specific origins in
    production.
    """
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


REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome and duration.

    A client-supplied ``X-Request-ID`` is reused; otherwise a new one is
    generated.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()
        status_code = 500

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                _logger.info(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    status=status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``DocflowError`` subclasses and return structured JSON errors.

    Stack traces are logged server-side only, never sent to the client.
    Generic Python exceptions bubble up to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except DocflowError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc)
