from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional

import pytest
from rental_booking.config import get_settings
from rental_booking.domain.repositories import ReservationFilter
from rental_booking.models import Reservation, ReservationStatus
from sqlalchemy.exc import OperationalError


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def make_reservation(
    code: str,
    *,
    time_slot: str = "UNSELECTED",
    status: ReservationStatus = ReservationStatus.BOOKED,
    unit_type: str = "PC Gaming",
    booking_date: date = date(2025, 1, 10),
    name: str = "opaque-name",
    phone: str = "opaque-phone",
    created_offset: int = 0,
) -> Reservation:
    created = _utc_now_naive() + timedelta(seconds=created_offset)
    return Reservation(
        booking_code=code,
        name_encrypted=name,
        phone=phone,
        unit_type=unit_type,
        booking_date=booking_date,
        time_slot=time_slot,
        status=status,
        created_at=created,
        updated_at=created,
    )


class InMemoryReservationRepo:
    """Reservation store kept in a list; `fail_*` flags simulate store outages."""

    def __init__(self, rows: Optional[List[Reservation]] = None) -> None:
        self.rows: List[Reservation] = list(rows or [])
        self.fail_list = False
        self.fail_write = False
        self.list_calls = 0
        self.upserts: List[tuple[str, dict[str, Any]]] = []
        # Rows appended right after the next list_filtered call, mimicking a concurrent writer.
        self.inject_after_list: List[Reservation] = []

    def _error(self) -> OperationalError:
        return OperationalError("stmt", None, Exception("store unavailable"))

    async def list_filtered(self, flt: ReservationFilter) -> List[Reservation]:
        self.list_calls += 1
        if self.fail_list:
            raise self._error()
        result = [
            row
            for row in self.rows
            if row.booking_date == flt.booking_date
            and row.unit_type == flt.unit_type
            and row.status in flt.status_in
            and not (flt.exclude_unselected and row.time_slot == "UNSELECTED")
        ]
        if self.inject_after_list:
            self.rows.extend(self.inject_after_list)
            self.inject_after_list = []
        return result

    async def list_all(self) -> List[Reservation]:
        if self.fail_list:
            raise self._error()
        return sorted(self.rows, key=lambda row: row.created_at, reverse=True)

    async def get_by_code(self, code: str) -> Optional[Reservation]:
        return next((row for row in self.rows if row.booking_code == code), None)

    async def insert(self, **fields: Any) -> Reservation:
        if self.fail_write:
            raise self._error()
        now = _utc_now_naive()
        row = Reservation(created_at=now, updated_at=now, **fields)
        self.rows.append(row)
        return row

    async def upsert_by_code(self, code: str, fields: dict[str, Any]) -> Reservation:
        if self.fail_write:
            raise self._error()
        self.upserts.append((code, fields))
        row = await self.get_by_code(code)
        now = _utc_now_naive()
        if row is None:
            row = Reservation(booking_code=code, created_at=now, updated_at=now, **fields)
            self.rows.append(row)
            return row
        for name, value in fields.items():
            setattr(row, name, value)
        row.updated_at = now
        return row

    async def update_status(self, code: str, status: ReservationStatus) -> Optional[Reservation]:
        if self.fail_write:
            raise self._error()
        row = await self.get_by_code(code)
        if row is not None:
            row.status = status
        return row

    async def delete(self, code: str) -> bool:
        if self.fail_write:
            raise self._error()
        before = len(self.rows)
        self.rows = [row for row in self.rows if row.booking_code != code]
        return len(self.rows) != before


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    monkeypatch.setenv("FIELD_CIPHER_KEY", "kripto")
    monkeypatch.setenv("HOURLY_RATE", "15000")
    get_settings.cache_clear()
