"""Error Handlers: map exceptions onto the API's error envelope.

Invariants:
    - PraxisError -> its own to_response() envelope at its own http_status
    - RequestValidationError -> 400 with one entry per offending field
    - Exception (catch-all) -> 500, never leaks internal details
    - Every logged error carries the order_id/ticket_id/protocol it concerns

Design Decisions:
    - Three layers: domain (PraxisError), validation (Pydantic), catch-all (Exception)
    - 4xx domain errors log at WARNING, 5xx at ERROR: rejected transitions are routine
    - 503s (protocol budget exhausted, database down) carry Retry-After; the same
      request is expected to succeed once the clash or outage passes
    - Validation field paths drop the request part ("body", "query"), so a bad
      order line reads "items.0.quantity"
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from praxis.core.errors import PraxisError, ErrorSeverity

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 1
REQUEST_PARTS = frozenset({"body", "query", "path", "header", "cookie"})


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(PraxisError, praxis_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)


async def praxis_error_handler(request: Request, exc: PraxisError) -> JSONResponse:
    level = logging.WARNING if exc.http_status < 500 else logging.ERROR
    context = exc.context
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "order_id": context.order_id,
            "ticket_id": context.ticket_id,
            "protocol": context.protocol,
        },
    )
    headers = None
    if exc.http_status == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": field_path(e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Invalid request on {request.url.path}: "
        + ", ".join(d["field"] or "<request>" for d in details),
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: never leaks internal details."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def field_path(loc) -> str:
    """("body", "items", 0, "quantity") -> "items.0.quantity"."""
    parts = list(loc)
    if parts and parts[0] in REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)
