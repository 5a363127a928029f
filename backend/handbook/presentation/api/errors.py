"""Maps workflow engine exceptions onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from handbook.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InvalidTransitionError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[Exception], tuple[int, str]] = {
    ValidationError: (status.HTTP_422_UNPROCESSABLE_CONTENT, "VALIDATION_ERROR"),
    EntityNotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    ConflictError: (status.HTTP_409_CONFLICT, "CONFLICT"),
    StorageUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, "STORAGE_UNAVAILABLE"),
}


async def workflow_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, error_code = next(
        codes for exc_type, codes in _STATUS_CODES.items() if isinstance(exc, exc_type)
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, error_code, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_code": error_code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type in _STATUS_CODES:
        app.add_exception_handler(exc_type, workflow_exception_handler)
