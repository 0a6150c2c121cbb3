from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_session
from ..domain.errors import ReservationFetchError
from ..domain.slot_grid import SelectionRange, build_grid
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..models import BookingType
from ..schemas import (
    AvailabilityRead,
    QuoteRead,
    QuoteRequest,
    Selection,
    SlotClickRead,
    SlotClickRequest,
    SlotRead,
)
from ..usecases import bookings as booking_usecase

router = APIRouter(prefix="", tags=["availability"])


@router.get("/availability", response_model=AvailabilityRead)
async def get_availability(
    booking_date: date = Query(..., alias="date"),
    booking_type: BookingType = Query(...),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityRead:
    repo = SqlAlchemyReservationRepository(session)
    try:
        blocked = await booking_usecase.load_availability(
            repo,
            booking_date=booking_date,
            booking_type=booking_type,
        )
    except ReservationFetchError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="failed to load reservations")

    return AvailabilityRead(
        date=booking_date,
        booking_type=booking_type,
        unit_type=booking_type.label,
        blocked=sorted(blocked),
        slots=[SlotRead.from_domain(slot) for slot in build_grid(blocked, SelectionRange())],
        hourly_rate=get_settings().hourly_rate,
    )


@router.post("/availability/select", response_model=SlotClickRead)
async def select_slot(payload: SlotClickRequest) -> SlotClickRead:
    click = booking_usecase.select_slot(
        payload.selection.to_domain(),
        label=payload.label,
        index=payload.index,
        blocked=payload.blocked,
    )
    return SlotClickRead(
        selection=Selection.from_domain(click.selection),
        state=click.selection.state,
        accepted=not click.rejected,
        notice=click.notice,
        total_price=booking_usecase.quote(click.selection, hourly_rate=get_settings().hourly_rate),
    )


@router.post("/quote", response_model=QuoteRead)
async def quote(payload: QuoteRequest) -> QuoteRead:
    hourly_rate = get_settings().hourly_rate
    return QuoteRead(
        selection=payload.selection,
        total_price=booking_usecase.quote(payload.selection.to_domain(), hourly_rate=hourly_rate),
        hourly_rate=hourly_rate,
    )
