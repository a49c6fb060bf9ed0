"""
HTTP Middleware and Error Mapping
=================================

Request tracing for the helpdesk API plus the handlers that turn
domain exceptions into JSON error bodies.

Every response carries `X-Correlation-ID` (echoed from the request
when supplied) and `X-Response-Time`.
"""

import time
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from helpdesk.config import settings
from helpdesk.core import ApplicationException, UnauthenticatedException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "unknown")


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation id and writes one timed access
    log line for it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        started = time.perf_counter()
        fields = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request crashed",
                extra={**fields, "error": str(e), "response_time_ms": _elapsed_ms(started)},
            )
            raise

        elapsed = _elapsed_ms(started)
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Response-Time"] = f"{elapsed}ms"
        logger.info(
            "Request served",
            extra={**fields, "status_code": response.status_code, "response_time_ms": elapsed},
        )
        return response


def _error_body(request: Request, detail: str, error_type: str, **extra: Any) -> Dict[str, Any]:
    body = {"detail": detail, "error_type": error_type, "correlation_id": _correlation_id(request)}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """
    Render a domain/application failure.

    401 responses carry a `WWW-Authenticate: Bearer` challenge so clients
    know to sign in again.
    """
    error_type = type(exc).__name__
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request rejected",
        extra={
            "correlation_id": _correlation_id(request),
            "path": request.url.path,
            "error_type": error_type,
            "error_message": exc.message,
            "status_code": exc.status_code,
        },
    )

    headers: Optional[Dict[str, str]] = None
    if isinstance(exc, UnauthenticatedException):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, error_type, details=exc.details or None),
        headers=headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500; the exception text is only echoed in development."""
    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": _correlation_id(request),
            "path": request.url.path,
            "error_type": type(exc).__name__,
        },
        exc_info=exc,
    )
    debug = str(exc) if settings.environment == "development" else None
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "Internal server error", "InternalError", debug_info=debug),
    )
