"""
Exception Handlers for the FastAPI Application.

``AppError`` subclasses raised by the services become JSON responses with
the error's HTTP status and machine code. Anything else is logged with a
full traceback and answered with a 500 carrying an error ID that clients
can quote when reporting the problem.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from waybill_ledger.core.errors import AppError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.monitoring import log_error

logger = get_logger(__name__)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Translate an application error into its HTTP response.

    Args:
        request: The HTTP request that caused the error
        exc: The application error

    Returns:
        JSONResponse with ``detail``, ``code`` and ``request_id``
    """
    request_id = _request_id(request)
    logger.warning(
        f"{request.method} {request.url.path} rejected with {exc.status_code} {exc.code}: {exc.message}",
        extra={"request_id": request_id, "status_code": exc.status_code, "code": exc.code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, "request_id": request_id},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "request_id": _request_id(request),
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(
        error_type=type(exc).__name__,
        error_message=str(exc),
        context={
            "error_id": error_id,
            "request_id": _request_id(request),
            "method": request.method,
            "path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
