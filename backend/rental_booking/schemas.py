import datetime
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .domain.intervals import HOUR_LABELS
from .domain.slot_grid import GridSlot, SelectionRange, SelectionState, SlotStatus
from .models import BookingType, Reservation, ReservationStatus

PaymentMethod = Literal["qris", "gopay", "ovo", "dana", "bca", "mandiri"]


class BookingCreate(BaseModel):
    booking_type: Optional[str] = None
    date: Optional[datetime.date] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class Selection(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None

    def to_domain(self) -> SelectionRange:
        return SelectionRange(start=self.start, end=self.end)

    @classmethod
    def from_domain(cls, selection: SelectionRange) -> "Selection":
        return cls(start=selection.start, end=selection.end)


class SlotRead(BaseModel):
    index: int
    label: str
    status: SlotStatus

    @classmethod
    def from_domain(cls, slot: GridSlot) -> "SlotRead":
        return cls(index=slot.index, label=slot.label, status=slot.status)


class AvailabilityRead(BaseModel):
    date: date
    booking_type: BookingType
    unit_type: str
    blocked: list[str]
    slots: list[SlotRead]
    hourly_rate: int


class SlotClickRequest(BaseModel):
    label: str
    index: int = Field(ge=0, le=len(HOUR_LABELS) - 1)
    selection: Selection = Field(default_factory=Selection)
    blocked: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _label_matches_index(self) -> "SlotClickRequest":
        if HOUR_LABELS[self.index] != self.label:
            raise ValueError(f"slot {self.index} is labelled {HOUR_LABELS[self.index]!r}, not {self.label!r}")
        return self


class SlotClickRead(BaseModel):
    selection: Selection
    state: SelectionState
    accepted: bool
    notice: Optional[str] = None
    total_price: int


class QuoteRequest(BaseModel):
    selection: Selection


class QuoteRead(BaseModel):
    selection: Selection
    total_price: int
    hourly_rate: int


class CheckoutRequest(BaseModel):
    booking_type: BookingType
    date: date
    name: str
    phone: str
    selection: Selection
    payment_method: Optional[PaymentMethod] = None
    known_blocked: list[str] = Field(default_factory=list)


class ReservationRead(BaseModel):
    booking_code: str
    name: str
    phone: str
    unit_type: str
    date: date
    time_slot: str
    status: ReservationStatus

    @classmethod
    def from_db(cls, *, reservation: Reservation, name: Optional[str] = None, phone: Optional[str] = None) -> "ReservationRead":
        return cls(
            booking_code=reservation.booking_code,
            name=reservation.name_encrypted if name is None else name,
            phone=reservation.phone if phone is None else phone,
            unit_type=reservation.unit_type,
            date=reservation.booking_date,
            time_slot=reservation.time_slot,
            status=reservation.status,
        )


class CheckoutRead(BaseModel):
    reservation: ReservationRead
    time_slot: str
    total_price: int


class SlotTakenRead(BaseModel):
    detail: str
    selection: Selection
    conflicting_interval: Optional[str] = None


class AdminLogin(BaseModel):
    username: str
    password: str


class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"


class StatusUpdate(BaseModel):
    status: ReservationStatus


class StatsRead(BaseModel):
    total: int
    total_paid: int
    active: int
    revenue: int
