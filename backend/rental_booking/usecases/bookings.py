from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.errors import (
    BookingValidationError,
    PaymentMethodError,
    ReservationFetchError,
    ReservationWriteError,
    SlotTakenError,
)
from ..domain.intervals import HOUR_LABELS, UNSELECTED
from ..domain.pricing import price, price_selection
from ..domain.repositories import ReservationFilter, ReservationRepository
from ..domain.services import conflicts_with_blocked, resolve_candidate, validate_candidate
from ..domain.slot_grid import SelectionRange, SlotClick, derive_blocked_hours, handle_slot_click
from ..models import BookingType, Reservation, ReservationStatus
from ..utils.crypto import FieldCipher
from ..utils.validation import validate_booking_form

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_LENGTH = 3


@dataclass(frozen=True)
class BookingForm:
    booking_type: Optional[str]
    booking_date: Optional[date]
    name: Optional[str]
    phone: Optional[str]


@dataclass(frozen=True)
class CheckoutRequest:
    booking_code: str
    booking_type: BookingType
    booking_date: date
    name: str
    phone: str
    selection: SelectionRange
    payment_method: Optional[str]
    known_blocked: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class CheckoutResult:
    reservation: Reservation
    time_slot: str
    total_price: int


def generate_booking_code() -> str:
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_LENGTH))
    return f"BK-{suffix}"


async def create_booking(
    repo: ReservationRepository,
    cipher: FieldCipher,
    *,
    form: BookingForm,
    today: date,
) -> Reservation:
    """Validate the booking form and store a placeholder with no interval chosen yet."""
    result = validate_booking_form(
        booking_type=form.booking_type,
        booking_date=form.booking_date,
        name=form.name,
        phone=form.phone,
        today=today,
    )
    if not result.is_valid:
        raise BookingValidationError(result.errors)
    try:
        return await repo.insert(
            booking_code=generate_booking_code(),
            name_encrypted=cipher.obfuscate((form.name or "").strip()),
            phone=cipher.obfuscate(form.phone or ""),
            unit_type=BookingType(form.booking_type).label,
            booking_date=form.booking_date,  # type: ignore[arg-type]
            time_slot=UNSELECTED,
            status=ReservationStatus.BOOKED,
        )
    except SQLAlchemyError as exc:
        logger.exception("failed to insert booking")
        raise ReservationWriteError("failed to save booking") from exc


async def fetch_occupied_intervals(
    repo: ReservationRepository,
    *,
    booking_date: date,
    unit_type: str,
    exclude_code: Optional[str] = None,
) -> list[str]:
    try:
        rows = await repo.list_filtered(ReservationFilter(booking_date=booking_date, unit_type=unit_type))
    except SQLAlchemyError as exc:
        logger.exception("failed to list reservations for %s on %s", unit_type, booking_date)
        raise ReservationFetchError("failed to load reservations") from exc
    return [row.time_slot for row in rows if row.booking_code != exclude_code]


async def load_availability(
    repo: ReservationRepository,
    *,
    booking_date: date,
    booking_type: BookingType,
) -> frozenset[str]:
    intervals = await fetch_occupied_intervals(repo, booking_date=booking_date, unit_type=booking_type.label)
    return derive_blocked_hours(intervals, HOUR_LABELS)


def select_slot(
    selection: SelectionRange,
    *,
    label: str,
    index: int,
    blocked: Iterable[str],
) -> SlotClick:
    return handle_slot_click(label, index, selection, frozenset(blocked), HOUR_LABELS)


def quote(selection: SelectionRange, *, hourly_rate: int) -> int:
    return price_selection(selection, hourly_rate, HOUR_LABELS)


async def checkout(
    repo: ReservationRepository,
    cipher: FieldCipher,
    *,
    request: CheckoutRequest,
    hourly_rate: int,
) -> CheckoutResult:
    """
    Commit the selected range and mark the booking paid.

    The range is checked twice: against the blocked hours the client rendered,
    then against reservations fetched right before the write. Neither check
    locks anything, so a concurrent write landing in between is not caught.
    """
    if not request.payment_method:
        raise PaymentMethodError("a payment method must be selected")

    candidate = resolve_candidate(request.selection, HOUR_LABELS)

    if conflicts_with_blocked(candidate, request.known_blocked, HOUR_LABELS):
        raise SlotTakenError("slot was just taken, pick another time")

    unit_type = request.booking_type.label
    fresh = await fetch_occupied_intervals(
        repo,
        booking_date=request.booking_date,
        unit_type=unit_type,
        exclude_code=request.booking_code,
    )
    check = validate_candidate(candidate, fresh, HOUR_LABELS)
    if not check.ok:
        logger.info(
            "checkout %s rejected: %s overlaps %s",
            request.booking_code,
            candidate.interval,
            check.conflicting_interval,
        )
        raise SlotTakenError(
            "slot was just booked by someone else, pick another time",
            conflicting_interval=check.conflicting_interval,
        )

    fields = {
        "name_encrypted": cipher.obfuscate(request.name.strip()),
        "phone": cipher.obfuscate(request.phone),
        "unit_type": unit_type,
        "booking_date": request.booking_date,
        "time_slot": candidate.interval,
        "status": ReservationStatus.PAID,
    }
    try:
        reservation = await repo.upsert_by_code(request.booking_code, fields)
    except SQLAlchemyError as exc:
        logger.exception("failed to save checkout for %s", request.booking_code)
        raise ReservationWriteError("failed to save payment") from exc

    end_index = candidate.end_index if request.selection.end is not None else None
    total = price(candidate.start_index, end_index, hourly_rate)
    return CheckoutResult(reservation=reservation, time_slot=candidate.interval, total_price=total)


def search_reservations(reservations: Iterable[Reservation], term: Optional[str]) -> list[Reservation]:
    """Case-insensitive substring match on booking code or stored name."""
    rows = list(reservations)
    if not term:
        return rows
    needle = term.lower()
    return [
        row for row in rows if needle in row.booking_code.lower() or needle in row.name_encrypted.lower()
    ]


async def track_bookings(repo: ReservationRepository, *, search: Optional[str] = None) -> list[Reservation]:
    try:
        rows = await repo.list_all()
    except SQLAlchemyError as exc:
        logger.exception("failed to list bookings")
        raise ReservationFetchError("failed to load reservations") from exc
    return search_reservations(rows, search)
