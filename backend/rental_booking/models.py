from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from sqlalchemy import Enum, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, String, Text


class Base(DeclarativeBase):
    pass


class BookingType(StrEnum):
    PS4 = "ps4"
    PS5 = "ps5"
    WARNET = "warnet"

    @property
    def label(self) -> str:
        return BOOKING_TYPE_LABELS[self]


BOOKING_TYPE_LABELS: dict[BookingType, str] = {
    BookingType.PS4: "PlayStation 4",
    BookingType.PS5: "PlayStation 5",
    BookingType.WARNET: "PC Gaming",
}


class ReservationStatus(StrEnum):
    BOOKED = "BOOKED"
    PAID = "PAID"
    PLAYING = "PLAYING"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


# Statuses that hold a time slot. DONE and CANCELLED free it.
OCCUPYING_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.BOOKED, ReservationStatus.PAID, ReservationStatus.PLAYING}
)

# Statuses counted as settled by the admin stats.
PAID_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PAID, ReservationStatus.PLAYING, ReservationStatus.DONE}
)


class Reservation(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("booking_code", name="uq_bookings_code"),
        Index("idx_bookings_unit_date", "unit_type", "date"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    booking_code: Mapped[str] = mapped_column(String(32), nullable=False)
    name_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    unit_type: Mapped[str] = mapped_column(String(64), nullable=False)
    booking_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(32), nullable=False, default="UNSELECTED")
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.BOOKED,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
