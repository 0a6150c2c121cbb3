from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_cipher, get_current_admin, get_session
from ..domain.errors import BookingNotFoundError, InvalidCredentialsError, ReservationFetchError, ReservationWriteError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import AdminLogin, ReservationRead, StatsRead, StatusUpdate, TokenRead
from ..usecases import admin as admin_usecase
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.auth import create_access_token
from ..utils.crypto import FieldCipher

router = APIRouter(prefix="/admin", tags=["admin"])
protected = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])


@router.post("/login", response_model=TokenRead)
async def login(payload: AdminLogin) -> TokenRead:
    settings = get_settings()
    try:
        admin_usecase.check_admin_credentials(
            payload.username,
            payload.password,
            expected_username=settings.admin_username,
            expected_password=settings.admin_password,
        )
    except InvalidCredentialsError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid username or password")
    token = create_access_token(
        subject=payload.username,
        secret=settings.auth_secret,
        algorithm=settings.auth_algorithm,
        expires_delta=timedelta(minutes=settings.auth_token_minutes),
    )
    return TokenRead(access_token=token)


@protected.get("/bookings", response_model=List[ReservationRead])
async def list_bookings(
    search: Optional[str] = Query(default=None, max_length=64),
    reveal_key: Optional[str] = Header(default=None, alias="X-Reveal-Key"),
    session: AsyncSession = Depends(get_session),
    cipher: FieldCipher = Depends(get_cipher),
) -> list[ReservationRead]:
    repo = SqlAlchemyReservationRepository(session)
    try:
        rows = await booking_usecase.track_bookings(repo, search=search)
    except ReservationFetchError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to load reservations")
    revealed = admin_usecase.reveal_reservations(rows, cipher, reveal_key)
    return [ReservationRead.from_db(reservation=item.reservation, name=item.name, phone=item.phone) for item in revealed]


@protected.get("/stats", response_model=StatsRead)
async def stats(session: AsyncSession = Depends(get_session)) -> StatsRead:
    repo = SqlAlchemyReservationRepository(session)
    try:
        rows = await booking_usecase.track_bookings(repo)
    except ReservationFetchError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to load reservations")
    result = admin_usecase.compute_stats(rows, hourly_rate=get_settings().hourly_rate)
    return StatsRead(total=result.total, total_paid=result.total_paid, active=result.active, revenue=result.revenue)


@protected.patch("/bookings/{booking_code}/status", response_model=ReservationRead)
async def update_status(
    payload: StatusUpdate,
    booking_code: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
    admin: str = Depends(get_current_admin),
) -> ReservationRead:
    repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            updated, previous = await admin_usecase.change_status(
                repo,
                booking_code=booking_code,
                status=payload.status,
            )
        except BookingNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
        except ReservationWriteError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to update status")

    try:
        emit_audit_log(
            action="booking.status_changed",
            initiator="admin",
            booking_code=updated.booking_code,
            unit_type=updated.unit_type,
            booking_date=updated.booking_date.isoformat(),
            time_slot=updated.time_slot,
            status_from=previous,
            status_to=updated.status,
            extra={"admin": admin},
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")

    return ReservationRead.from_db(reservation=updated)


@protected.delete("/bookings/{booking_code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_code: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
    admin: str = Depends(get_current_admin),
) -> Response:
    repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            removed = await admin_usecase.remove_booking(repo, booking_code=booking_code)
        except BookingNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
        except ReservationWriteError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to delete booking")

    try:
        emit_audit_log(
            action="booking.deleted",
            initiator="admin",
            booking_code=removed.booking_code,
            unit_type=removed.unit_type,
            booking_date=removed.booking_date.isoformat(),
            time_slot=removed.time_slot,
            status_from=removed.status,
            status_to=None,
            extra={"admin": admin},
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
