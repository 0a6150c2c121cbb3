from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

HOUR_LABELS: tuple[str, ...] = tuple(f"{hour:02d}:00" for hour in range(24))
END_OF_DAY = "24:00"
UNSELECTED = "UNSELECTED"

_DELIMITER = re.compile(r"\s*-\s*")


@dataclass(frozen=True)
class ParsedInterval:
    start_index: int
    end_index: int


@dataclass(frozen=True)
class IntervalParseFailure:
    reason: str


IntervalParse = ParsedInterval | IntervalParseFailure


def parse_interval(text: str | None, hour_labels: Sequence[str] = HOUR_LABELS) -> IntervalParse:
    """
    Parse a stored "HH:00 - HH:00" interval into hour indices.

    Whitespace around the delimiter is optional. An end label of "24:00" resolves
    to one past the last slot when the label sequence has no entry for it.
    Never raises; failures come back as IntervalParseFailure.
    """
    if not text:
        return IntervalParseFailure("empty interval")
    if text.strip() == UNSELECTED:
        return IntervalParseFailure("interval not selected")

    parts = _DELIMITER.split(text.strip())
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return IntervalParseFailure(f"malformed interval {text!r}")
    start_label, end_label = parts[0].strip(), parts[1].strip()

    start_index = index_of(start_label, hour_labels)
    end_index = index_of(end_label, hour_labels)
    if end_index is None and end_label == END_OF_DAY:
        end_index = len(hour_labels)

    if start_index is None:
        return IntervalParseFailure(f"unknown start label {start_label!r}")
    if end_index is None:
        return IntervalParseFailure(f"unknown end label {end_label!r}")
    return ParsedInterval(start_index=start_index, end_index=end_index)


def format_interval(start_label: str, end_label: str) -> str:
    return f"{start_label} - {end_label}"


def label_for_end(index: int, hour_labels: Sequence[str] = HOUR_LABELS) -> str:
    """Label at `index`, or the end-of-day sentinel past the last slot."""
    if 0 <= index < len(hour_labels):
        return hour_labels[index]
    return END_OF_DAY


def index_of(label: str, hour_labels: Sequence[str] = HOUR_LABELS) -> int | None:
    try:
        return list(hour_labels).index(label)
    except ValueError:
        return None
