"""
Exception handlers for the producer API.

Error bodies use the storefront's shape: `{message}` for client
errors and `{message, error}` for server errors.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from eventlog.core.exceptions import (
    EventLogServiceError,
    LogStoreError,
    MissingFieldsError,
    QueuePublishError,
)

logger = logging.getLogger(__name__)


async def missing_fields_handler(request: Request, exc: MissingFieldsError) -> JSONResponse:
    logger.warning(
        f"Rejected event on {request.url.path}: missing {', '.join(exc.missing)}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "missing": exc.missing},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors"""
    errors = []
    for err in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        })

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid event payload", "errors": errors},
    )


async def queue_publish_handler(request: Request, exc: QueuePublishError) -> JSONResponse:
    logger.error(f"Logging Error: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Failed to send log", "error": exc.reason},
    )


async def log_store_handler(request: Request, exc: LogStoreError) -> JSONResponse:
    logger.error(f"Log store error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=(
            status.HTTP_503_SERVICE_UNAVAILABLE
            if exc.unavailable
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        content={"message": "Server error", "error": exc.message},
    )


async def service_error_handler(request: Request, exc: EventLogServiceError) -> JSONResponse:
    logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error", "error": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MissingFieldsError, missing_fields_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(QueuePublishError, queue_publish_handler)
    app.add_exception_handler(LogStoreError, log_store_handler)
    app.add_exception_handler(EventLogServiceError, service_error_handler)
