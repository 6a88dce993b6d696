class DomainError(Exception):
    """Base class for reservation domain errors."""


class SelectionRequiredError(DomainError):
    pass


class AuthenticationRequiredError(DomainError):
    pass


class InvalidReservationError(DomainError):
    pass


class CapacityExceededError(DomainError):
    pass


class ReservationNotFoundError(DomainError):
    pass


class DeleteNotAllowedError(DomainError):
    pass


class StoreError(DomainError):
    """The reservation or profile store failed to read or write."""
