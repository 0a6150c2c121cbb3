from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..models import BookingType

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PHONE_MIN_DIGITS = 9
PHONE_MAX_DIGITS = 15

_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
_REPEATED_DIGIT = re.compile(r"^(\d)\1+$")


@dataclass
class ValidationResult:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def clean_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def validate_booking_form(
    *,
    booking_type: Optional[str],
    booking_date: Optional[date],
    name: Optional[str],
    phone: Optional[str],
    today: date,
) -> ValidationResult:
    """Check the customer booking form. Field keys match the request payload."""
    result = ValidationResult()

    if not booking_type:
        result.errors["booking_type"] = "choose a rental type"
    elif booking_type not in {t.value for t in BookingType}:
        result.errors["booking_type"] = "unknown rental type"

    if booking_date is None:
        result.errors["date"] = "choose a booking date"
    elif booking_date < today:
        result.errors["date"] = "date cannot be in the past"

    trimmed_name = (name or "").strip()
    if not trimmed_name:
        result.errors["name"] = "enter your name"
    elif len(trimmed_name) < NAME_MIN_LENGTH:
        result.errors["name"] = f"name must be at least {NAME_MIN_LENGTH} characters"
    elif len(name or "") > NAME_MAX_LENGTH:
        result.errors["name"] = f"name must be at most {NAME_MAX_LENGTH} characters"
    elif not _NAME_PATTERN.match(trimmed_name):
        result.errors["name"] = "name may only contain letters and spaces"

    if not phone or not phone.strip():
        result.errors["phone"] = "enter a WhatsApp number"
    else:
        digits = clean_phone(phone)
        if len(digits) < PHONE_MIN_DIGITS:
            result.errors["phone"] = f"phone number needs at least {PHONE_MIN_DIGITS} digits"
        elif len(digits) > PHONE_MAX_DIGITS:
            result.errors["phone"] = f"phone number allows at most {PHONE_MAX_DIGITS} digits"
        elif _REPEATED_DIGIT.match(digits):
            result.errors["phone"] = "phone number cannot repeat a single digit"

    return result
