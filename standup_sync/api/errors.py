# standup_sync/api/errors.py
from http import HTTPStatus

from fastapi import HTTPException

from standup_sync.core.exceptions import (
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    RemoteCallError,
    SessionStateError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (PermissionDeniedError, HTTPStatus.FORBIDDEN),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (SessionStateError, HTTPStatus.CONFLICT),
    (RemoteCallError, HTTPStatus.BAD_GATEWAY),
)


def to_http_exception(exc: DomainError) -> HTTPException:
    """
    Translate a domain error raised by a service into an HTTP error.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
