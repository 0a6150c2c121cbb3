from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from ..models import OCCUPYING_STATUSES, Reservation, ReservationStatus


@dataclass(frozen=True)
class ReservationFilter:
    booking_date: date
    unit_type: str
    status_in: frozenset[ReservationStatus] = OCCUPYING_STATUSES
    exclude_unselected: bool = True


class ReservationRepository(Protocol):
    async def list_filtered(self, flt: ReservationFilter) -> list[Reservation]: ...

    async def list_all(self) -> list[Reservation]: ...

    async def get_by_code(self, code: str) -> Reservation | None: ...

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
    ) -> Reservation: ...

    async def upsert_by_code(self, code: str, fields: dict[str, Any]) -> Reservation: ...

    async def update_status(self, code: str, status: ReservationStatus) -> Reservation | None: ...

    async def delete(self, code: str) -> bool: ...
