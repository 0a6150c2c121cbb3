from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.intervals import UNSELECTED
from ..domain.repositories import ReservationFilter, ReservationRepository
from ..models import Reservation, ReservationStatus

_UPSERT_FIELDS = frozenset(
    {"name_encrypted", "phone", "unit_type", "booking_date", "time_slot", "status"}
)


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyReservationRepository(ReservationRepository):
    """
    Reservation store over the `bookings` table.

    Reads take no row locks and intervals carry no uniqueness constraint, so
    overlap protection stays with the callers' re-validation.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_filtered(self, flt: ReservationFilter) -> List[Reservation]:
        stmt: Select[tuple[Reservation]] = select(Reservation).where(
            Reservation.booking_date == flt.booking_date,
            Reservation.unit_type == flt.unit_type,
            Reservation.status.in_(list(flt.status_in)),
        )
        if flt.exclude_unselected:
            stmt = stmt.where(Reservation.time_slot != UNSELECTED)
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def list_all(self) -> List[Reservation]:
        stmt = select(Reservation).order_by(Reservation.created_at.desc(), Reservation.id.desc())
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def get_by_code(self, code: str) -> Optional[Reservation]:
        result = await self.session.scalar(select(Reservation).where(Reservation.booking_code == code))
        return result if isinstance(result, Reservation) else None

    async def insert(
        self,
        *,
        booking_code: str,
        name_encrypted: str,
        phone: str,
        unit_type: str,
        booking_date: date,
        time_slot: str,
        status: ReservationStatus,
    ) -> Reservation:
        now = _utc_now_naive()
        reservation = Reservation(
            booking_code=booking_code,
            name_encrypted=name_encrypted,
            phone=phone,
            unit_type=unit_type,
            booking_date=booking_date,
            time_slot=time_slot,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def upsert_by_code(self, code: str, fields: dict[str, Any]) -> Reservation:
        unknown = set(fields) - _UPSERT_FIELDS
        if unknown:
            raise ValueError(f"unsupported fields: {sorted(unknown)}")

        now = _utc_now_naive()
        reservation = await self.get_by_code(code)
        if reservation is None:
            reservation = Reservation(booking_code=code, created_at=now, **fields)
        else:
            for name, value in fields.items():
                setattr(reservation, name, value)
        reservation.updated_at = now
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def update_status(self, code: str, status: ReservationStatus) -> Optional[Reservation]:
        reservation = await self.get_by_code(code)
        if reservation is None:
            return None
        reservation.status = status
        reservation.updated_at = _utc_now_naive()
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def delete(self, code: str) -> bool:
        result = await self.session.execute(delete(Reservation).where(Reservation.booking_code == code))
        return bool(getattr(result, "rowcount", 0))
