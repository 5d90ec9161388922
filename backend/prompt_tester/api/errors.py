"""Translate domain errors into HTTP errors."""

from fastapi import HTTPException, status

from prompt_tester.core.exceptions import (
    BusinessLogicError,
    CredentialResolutionError,
    NotFoundError,
    PromptTesterError,
    SessionCreationError,
    UpstreamHTTPError,
    ValidationError,
)

_STATUS_BY_ERROR: list[tuple[type[PromptTesterError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (BusinessLogicError, status.HTTP_409_CONFLICT),
    (CredentialResolutionError, status.HTTP_424_FAILED_DEPENDENCY),
    (SessionCreationError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(error: PromptTesterError) -> HTTPException:
    if isinstance(error, UpstreamHTTPError):
        return HTTPException(status_code=error.status_code, detail=error.message)
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.message,
    )
