# shared/helpers/json_response_helper.py
from typing import Any

from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import JsonOutResult

_ENVELOPE_KEYS = {"status", "status_code", "message"}


def success_response(data: Any, message: str = "Success",
                     status_code: str = AppStatusCode.DATA_RETRIEVED_SUCCESSFULLY) -> JsonOutResult:
    return JsonOutResult(data=data, status="Success",
                         status_code=str(status_code), message=message)


def failure_envelope(message: str, status_code: str = AppStatusCode.OPERATION_FAILED) -> dict:
    """Failure body shared by service errors and the app-level handlers."""
    return JsonOutResult(data=None, status="Failure",
                         status_code=str(status_code), message=message).model_dump()


def is_envelope(detail: Any) -> bool:
    return isinstance(detail, dict) and _ENVELOPE_KEYS.issubset(detail.keys())
