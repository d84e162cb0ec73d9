"""
Standardized error response utilities
"""

from typing import Any

from starlette.exceptions import HTTPException as StarletteHTTPException

from models.response_model import ResponseModel
from utils.config_util import get_settings
from utils.constants import Messages
from utils.response_util import process_response


def _development(development: bool | None) -> bool:
    if development is not None:
        return development
    return get_settings().is_development


def error_detail(exc: BaseException | None) -> str | None:
    if exc is None:
        return None
    text = str(exc)
    return text or type(exc).__name__


def create_error_response(
    status_code: int,
    message: str,
    exc: BaseException | None = None,
    request_id: str | None = None,
    development: bool | None = None,
) -> Any:
    """
    Create the {status: "error", message, error?} response.

    The raw error detail is only attached in development mode.
    """
    response_headers = {}
    if request_id:
        response_headers['request_id'] = request_id
    response_model = ResponseModel(
        status_code=status_code,
        response_headers=response_headers,
        status='error',
        message=message,
        error=error_detail(exc) if _development(development) else None,
    )
    return process_response(response_model.dict())


def success_response(
    status_code: int = 200,
    message: str | None = None,
    data: dict | list | None = None,
    extra: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> Any:
    """
    Create a {status: "success", ...} response.
    """
    response_headers = {}
    if request_id:
        response_headers['request_id'] = request_id
    response_model = ResponseModel(
        status_code=status_code,
        response_headers=response_headers,
        status='success',
        message=message,
        data=data,
        response=extra,
    )
    return process_response(response_model.dict())


def status_code_for(exc: BaseException) -> int:
    """
    The status a failure carries itself, or 500.
    """
    for attr in ('status_code', 'status'):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 400 <= value <= 599:
            return value
    return 500


def exception_response(exc: BaseException, development: bool | None = None, request_id: str | None = None) -> Any:
    """
    Normalize any failure into the error envelope.

    Client errors keep their own message. Server errors use a generic message,
    with the raw detail only in development mode.
    """
    status_code = status_code_for(exc)
    if isinstance(exc, StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) and exc.detail else Messages.REQUEST_FAILED
    elif status_code < 500:
        message = error_detail(exc)
    else:
        message = Messages.INTERNAL_ERROR
    return create_error_response(status_code, message, exc, request_id=request_id, development=development)
