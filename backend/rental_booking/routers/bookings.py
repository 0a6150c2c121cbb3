from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_cipher, get_session
from ..domain.errors import (
    BookingValidationError,
    InvalidRangeError,
    MissingStartError,
    PaymentMethodError,
    ReservationFetchError,
    ReservationWriteError,
    SlotTakenError,
)
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import BookingCreate, CheckoutRead, CheckoutRequest, ReservationRead, SlotTakenRead
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.crypto import FieldCipher
from ..utils.time import venue_today

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    cipher: FieldCipher = Depends(get_cipher),
) -> ReservationRead:
    repo = SqlAlchemyReservationRepository(session)
    form = booking_usecase.BookingForm(
        booking_type=payload.booking_type,
        booking_date=payload.date,
        name=payload.name,
        phone=payload.phone,
    )
    async with session.begin():
        try:
            reservation = await booking_usecase.create_booking(repo, cipher, form=form, today=venue_today())
        except BookingValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
        except ReservationWriteError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to save booking")

    try:
        emit_audit_log(
            action="booking.created",
            initiator="customer",
            booking_code=reservation.booking_code,
            unit_type=reservation.unit_type,
            booking_date=reservation.booking_date.isoformat(),
            time_slot=reservation.time_slot,
            status_from=None,
            status_to=reservation.status,
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")

    return ReservationRead.from_db(reservation=reservation)


@router.get("", response_model=List[ReservationRead])
async def track_bookings(
    search: Optional[str] = Query(default=None, max_length=64),
    session: AsyncSession = Depends(get_session),
) -> list[ReservationRead]:
    repo = SqlAlchemyReservationRepository(session)
    try:
        rows = await booking_usecase.track_bookings(repo, search=search)
    except ReservationFetchError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to load reservations")
    return [ReservationRead.from_db(reservation=row) for row in rows]


@router.post("/{booking_code}/checkout", response_model=CheckoutRead)
async def checkout(
    payload: CheckoutRequest,
    booking_code: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
    cipher: FieldCipher = Depends(get_cipher),
) -> CheckoutRead:
    repo = SqlAlchemyReservationRepository(session)
    request = booking_usecase.CheckoutRequest(
        booking_code=booking_code,
        booking_type=payload.booking_type,
        booking_date=payload.date,
        name=payload.name,
        phone=payload.phone,
        selection=payload.selection.to_domain(),
        payment_method=payload.payment_method,
        known_blocked=frozenset(payload.known_blocked),
    )
    async with session.begin():
        try:
            result = await booking_usecase.checkout(
                repo,
                cipher,
                request=request,
                hourly_rate=get_settings().hourly_rate,
            )
        except MissingStartError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="select a start time first")
        except InvalidRangeError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end time must be after start time")
        except PaymentMethodError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="select a payment method first")
        except SlotTakenError as exc:
            body = SlotTakenRead(
                detail=str(exc),
                selection=payload.selection,
                conflicting_interval=exc.conflicting_interval,
            )
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=body.model_dump())
        except ReservationFetchError:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="could not verify availability, try again",
            )
        except ReservationWriteError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to save payment")

    reservation = result.reservation
    try:
        emit_audit_log(
            action="booking.paid",
            initiator="customer",
            booking_code=reservation.booking_code,
            unit_type=reservation.unit_type,
            booking_date=reservation.booking_date.isoformat(),
            time_slot=result.time_slot,
            status_from=None,
            status_to=reservation.status,
            extra={"payment_method": payload.payment_method, "total_price": result.total_price},
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")

    return CheckoutRead(
        reservation=ReservationRead.from_db(reservation=reservation),
        time_slot=result.time_slot,
        total_price=result.total_price,
    )
