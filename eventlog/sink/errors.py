"""
RPC error rendering for the log-writer.

Every failure leaves the service as `{code, details}` with the HTTP status
of its StatusCode, which LogServiceClient turns back into an RpcError.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eventlog.core.exceptions import LogStoreError
from eventlog.rpc.status import StatusCode
from eventlog.schemas.rpc import RpcErrorBody

logger = logging.getLogger(__name__)


def rpc_error_response(code: StatusCode, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=code.http_status,
        content=RpcErrorBody(code=code.value, details=details).model_dump(),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # Drop the leading "body" location segment
        loc = [str(p) for p in err["loc"] if p != "body"]
        msg = err["msg"].removeprefix("Value error, ")
        parts.append(f"{'.'.join(loc) or 'body'}: {msg}")
    return "; ".join(parts)


async def invalid_argument_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _describe_validation_error(exc)
    logger.warning(f"LogEvent rejected with INVALID_ARGUMENT: {details}")
    return rpc_error_response(StatusCode.INVALID_ARGUMENT, details)


async def log_store_error_handler(request: Request, exc: LogStoreError) -> JSONResponse:
    code = StatusCode.UNAVAILABLE if exc.unavailable else StatusCode.INTERNAL
    logger.error(f"Error saving log: {exc.message}")
    return rpc_error_response(code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = StatusCode.from_http_status(exc.status_code)
    if code is StatusCode.UNAUTHENTICATED:
        logger.warning(f"Unauthenticated call to {request.url.path}")
    return rpc_error_response(code, str(exc.detail))


def register_rpc_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, invalid_argument_handler)
    app.add_exception_handler(LogStoreError, log_store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
