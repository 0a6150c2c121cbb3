from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "booking.created",
    "booking.paid",
    "booking.status_changed",
    "booking.deleted",
]
AuditInitiator = Literal["customer", "admin"]


def _build_logger(name: str = "audit") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    if not logger.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(stream)
    return logger


_audit_logger = _build_logger()


def _plain(value: Any) -> Any:
    # StrEnum members serialise as their raw value
    return getattr(value, "value", value)


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    booking_code: str,
    unit_type: Optional[str],
    booking_date: Optional[str],
    time_slot: Optional[str],
    status_from: Optional[str],
    status_to: Optional[str],
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Write one JSON line describing a booking lifecycle event.

    Customer name and phone never reach this log, obfuscated or not.
    A logger failure surfaces as RuntimeError so callers can fail the request.
    """
    fields: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "request_id": get_request_id(),
        "booking_code": booking_code,
        "unit_type": unit_type,
        "date": booking_date,
        "time_slot": time_slot,
        "status_from": _plain(status_from),
        "status_to": _plain(status_to),
        "message": message,
        **(extra or {}),
    }
    line = json.dumps({key: value for key, value in fields.items() if value is not None}, ensure_ascii=True)
    try:
        _audit_logger.info(line)
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
