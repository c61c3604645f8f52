import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError, OperationalError

from shared.core.exceptions import Unavailable
from shared.helpers.json_response_helper import failure_envelope, is_envelope
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def _failure(message: str, status_code: str, http_status: int, headers: dict | None = None):
    return JSONResponse(content=failure_envelope(message, status_code), status_code=http_status, headers=headers)


def _unavailable():
    error = Unavailable("Service temporarily unavailable, please retry",
                        headers={"Retry-After": "1"})
    return JSONResponse(content=error.detail, status_code=error.status_code, headers=error.headers)


def setup_exception_handlers(app: FastAPI):

    # ServiceError subclasses HTTPException and already carries the envelope
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if is_envelope(exc.detail):
            return JSONResponse(content=exc.detail, status_code=exc.status_code, headers=exc.headers)
        return _failure(str(exc.detail), AppStatusCode.OPERATION_FAILED,
                        exc.status_code or 400, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _failure(str(exc.errors()), AppStatusCode.INVALID_INPUT, 422)

    # Transient backend failures are safe to retry for idempotent calls
    @app.exception_handler(OperationalError)
    async def unavailable_exception_handler(request: Request, exc: OperationalError):
        logger.warning("Database unavailable on %s %s: %s",
                       request.method, request.url.path, exc.orig)
        return _unavailable()

    @app.exception_handler(DBAPIError)
    async def dbapi_exception_handler(request: Request, exc: DBAPIError):
        if exc.connection_invalidated:
            logger.warning("Database connection lost on %s %s",
                           request.method, request.url.path)
            return _unavailable()
        logger.exception("Database error on %s %s",
                         request.method, request.url.path)
        return _failure("Database error", AppStatusCode.OPERATION_ERROR, 500)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)
        return _failure(str(exc), AppStatusCode.OPERATION_FAILED, 500)
