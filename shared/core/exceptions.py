from fastapi import HTTPException, status

from shared.helpers.json_response_helper import failure_envelope
from shared.utils.app_status_code import AppStatusCode


class ServiceError(HTTPException):
    """Base class for every failure the marketplace core reports.

    The ``detail`` carries the same failure envelope the API returns, so a
    service error raised deep inside a crud function reaches the client
    unchanged.
    """

    http_status = status.HTTP_400_BAD_REQUEST
    app_status_code = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str, app_status_code: str | None = None, headers: dict | None = None):
        self.message = message
        if app_status_code:
            self.app_status_code = app_status_code
        super().__init__(
            status_code=self.http_status,
            detail=failure_envelope(message, self.app_status_code),
            headers=headers,
        )

    def __str__(self):
        return self.message


class InvalidArgument(ServiceError):
    app_status_code = AppStatusCode.INVALID_INPUT


class NotFound(ServiceError):
    http_status = status.HTTP_404_NOT_FOUND
    app_status_code = AppStatusCode.NOT_FOUND


class InsufficientStock(ServiceError):
    http_status = status.HTTP_409_CONFLICT
    app_status_code = AppStatusCode.INSUFFICIENT_STOCK

    def __init__(self, message: str, product_id=None, available: int | None = None):
        self.product_id = product_id
        self.available = available
        super().__init__(message)


class InvalidTransition(ServiceError):
    http_status = status.HTTP_409_CONFLICT
    app_status_code = AppStatusCode.INVALID_STATUS_TRANSITION


class CrossVendorViolation(ServiceError):
    app_status_code = AppStatusCode.CROSS_VENDOR_ORDER


class Unavailable(ServiceError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    app_status_code = AppStatusCode.SERVICE_UNAVAILABLE


class Unauthorized(ServiceError):
    http_status = status.HTTP_403_FORBIDDEN
    app_status_code = AppStatusCode.UNAUTHORIZED_ACTION


class Unauthenticated(Unauthorized):
    http_status = status.HTTP_401_UNAUTHORIZED
    app_status_code = AppStatusCode.AUTHENTICATION_TOKEN_INVALID
