import logging

from fastapi import HTTPException, status

from ..domain.errors import (
    AuthenticationRequiredError,
    CapacityExceededError,
    DeleteNotAllowedError,
    DomainError,
    InvalidReservationError,
    ReservationNotFoundError,
    SelectionRequiredError,
    StoreError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[DomainError], int] = {
    SelectionRequiredError: status.HTTP_400_BAD_REQUEST,
    AuthenticationRequiredError: status.HTTP_401_UNAUTHORIZED,
    DeleteNotAllowedError: status.HTTP_403_FORBIDDEN,
    ReservationNotFoundError: status.HTTP_404_NOT_FOUND,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    InvalidReservationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: DomainError) -> HTTPException:
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if isinstance(exc, StoreError):
        logger.error("store failure: %s", exc, exc_info=exc)
        return HTTPException(status_code=status_code, detail="reservation store unavailable, please retry")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequiredError) else None
    return HTTPException(status_code=status_code, detail=str(exc), headers=headers)
