from __future__ import annotations

import logging

from fastapi import HTTPException

from identity_service.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CompensationFailure,
    ConflictError,
    DomainError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)


logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (ConflictError, 409),
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ExternalServiceError, 502),
)


def to_http_exception(exc: DomainError) -> HTTPException:
    if isinstance(exc, CompensationFailure):
        logger.critical(
            "api: compensation_failure identity_id=%s profile_id=%s",
            exc.identity_id,
            exc.profile_id,
        )
        return HTTPException(status_code=500, detail="Registration could not be completed.")
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    logger.error("api: unmapped_domain_error type=%s", type(exc).__name__)
    return HTTPException(status_code=500, detail="Internal error.")
