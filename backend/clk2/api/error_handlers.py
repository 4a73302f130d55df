"""Error Handlers — JSON bodies for failures outside the JSON-RPC envelope.

Invariants:
    - A Clk2Error escaping a plain route answers with its http_status and to_response()
    - RequestValidationError answers 400 and lists every offending field
    - Any other exception answers 500 with a fixed body; the traceback only goes to the log

Design Decisions:
    - POST / never reaches these handlers: it converts every failure into a JSON-RPC
      error object itself
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clk2.core.errors import Clk2Error, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Clk2Error, handle_clk2_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def _error_body(
    code: str, message: str, category: ErrorCategory, severity: ErrorSeverity, **extra,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **extra,
        },
    }


async def handle_clk2_error(request: Request, exc: Clk2Error) -> JSONResponse:
    log = logger.error if exc.severity == ErrorSeverity.CRITICAL else logger.warning
    log(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={"error_code": exc.code, "clock_id": exc.context.clock_id},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    fields = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} rejected: {fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, fields=fields,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: the client never sees exception details."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )
