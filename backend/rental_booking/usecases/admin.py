from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.errors import BookingNotFoundError, InvalidCredentialsError, ReservationWriteError
from ..domain.repositories import ReservationRepository
from ..models import PAID_STATUSES, Reservation, ReservationStatus
from ..utils.crypto import FieldCipher, reveal_or_opaque

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealedReservation:
    reservation: Reservation
    name: str
    phone: str


@dataclass(frozen=True)
class BookingStats:
    total: int
    total_paid: int
    active: int
    revenue: int


def check_admin_credentials(username: str, password: str, *, expected_username: str, expected_password: str) -> None:
    user_ok = hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), expected_password.encode("utf-8"))
    if not (user_ok and password_ok):
        raise InvalidCredentialsError("invalid username or password")


def reveal_reservations(
    reservations: Iterable[Reservation],
    cipher: FieldCipher,
    key: Optional[str],
) -> list[RevealedReservation]:
    """Reveal personal fields with `key`; values it cannot open stay opaque."""
    return [
        RevealedReservation(
            reservation=row,
            name=reveal_or_opaque(cipher, row.name_encrypted, key),
            phone=reveal_or_opaque(cipher, row.phone, key),
        )
        for row in reservations
    ]


def compute_stats(reservations: Iterable[Reservation], *, hourly_rate: int) -> BookingStats:
    # Revenue is a flat one-hour rate per settled booking.
    rows = list(reservations)
    paid = sum(1 for row in rows if row.status in PAID_STATUSES)
    active = sum(1 for row in rows if row.status == ReservationStatus.PLAYING)
    return BookingStats(total=len(rows), total_paid=paid, active=active, revenue=paid * hourly_rate)


async def change_status(
    repo: ReservationRepository,
    *,
    booking_code: str,
    status: ReservationStatus,
) -> tuple[Reservation, ReservationStatus]:
    """Set a new status. Returns the updated row and the status it had before."""
    current = await repo.get_by_code(booking_code)
    if current is None:
        raise BookingNotFoundError("booking not found")
    previous = current.status
    if previous == status:
        return current, previous
    try:
        updated = await repo.update_status(booking_code, status)
    except SQLAlchemyError as exc:
        logger.exception("failed to update status of %s", booking_code)
        raise ReservationWriteError("failed to update status") from exc
    if updated is None:
        raise BookingNotFoundError("booking not found")
    return updated, previous


async def remove_booking(repo: ReservationRepository, *, booking_code: str) -> Reservation:
    current = await repo.get_by_code(booking_code)
    if current is None:
        raise BookingNotFoundError("booking not found")
    try:
        deleted = await repo.delete(booking_code)
    except SQLAlchemyError as exc:
        logger.exception("failed to delete %s", booking_code)
        raise ReservationWriteError("failed to delete booking") from exc
    if not deleted:
        raise BookingNotFoundError("booking not found")
    return current
