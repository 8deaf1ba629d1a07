"""Translate service errors into HTTP responses"""

import logging

from fastapi import HTTPException, status

from workshop_registry.errors import (
    FieldNotFoundError,
    InvalidFieldError,
    InvalidStatusTransitionError,
    PersistenceUnavailable,
    RegistrationNotAllowedError,
    RegistrationNotFoundError,
    SchemaValidationError,
    SpeakerNotFoundError,
    SubmissionValidationError,
    UnknownFieldIdError,
    WorkshopNotFoundError,
)

logger = logging.getLogger(__name__)

# Errors that carry a meaning for the client; anything else is a 500
SERVICE_ERRORS = (
    ValueError,
    LookupError,
    RegistrationNotAllowedError,
    PersistenceUnavailable,
)


def http_error(e: Exception) -> HTTPException:
    """Map a service exception to the HTTPException a router should raise"""
    if isinstance(e, SubmissionValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Please correct the errors in the form",
                "errors": [failure.to_dict() for failure in e.failures],
            },
        )
    if isinstance(e, SchemaValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(e),
                "errors": [error.to_dict() for error in e.errors],
            },
        )
    if isinstance(e, InvalidFieldError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": [e.to_dict()]},
        )
    if isinstance(
        e,
        (
            WorkshopNotFoundError,
            RegistrationNotFoundError,
            FieldNotFoundError,
            SpeakerNotFoundError,
        ),
    ):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, RegistrationNotAllowedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, PersistenceUnavailable):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Registration is temporarily unavailable, please try again",
        )
    if isinstance(e, (UnknownFieldIdError, InvalidStatusTransitionError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.error(f"Unexpected error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred",
    )
