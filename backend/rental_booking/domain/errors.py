from __future__ import annotations

from typing import Mapping


class DomainError(Exception):
    """Base class for booking domain errors."""


class BookingValidationError(DomainError):
    def __init__(self, errors: Mapping[str, str]) -> None:
        super().__init__("booking form is invalid")
        self.errors = dict(errors)


class BookingNotFoundError(DomainError):
    pass


class MissingStartError(DomainError):
    pass


class InvalidRangeError(DomainError):
    """The selected end does not come after the start."""


class PaymentMethodError(DomainError):
    pass


class SlotTakenError(DomainError):
    """The requested range overlaps a reservation that is already held."""

    def __init__(self, message: str, *, conflicting_interval: str | None = None) -> None:
        super().__init__(message)
        self.conflicting_interval = conflicting_interval


class ReservationFetchError(DomainError):
    pass


class ReservationWriteError(DomainError):
    pass


class InvalidCredentialsError(DomainError):
    pass
