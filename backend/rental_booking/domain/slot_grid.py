from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Iterable, Sequence

from .intervals import HOUR_LABELS, IntervalParseFailure, index_of, parse_interval

logger = logging.getLogger(__name__)

SELECTION_CONFLICT_NOTICE = "The selected range crosses a slot that is already booked."


class SelectionState(StrEnum):
    EMPTY = "empty"
    START_ONLY = "start_only"
    FULL = "full"


class SlotStatus(StrEnum):
    AVAILABLE = "available"
    BOOKED = "booked"
    SELECTED = "selected"


@dataclass(frozen=True)
class SelectionRange:
    start: str | None = None
    end: str | None = None

    @property
    def state(self) -> SelectionState:
        if self.start is None:
            return SelectionState.EMPTY
        if self.end is None:
            return SelectionState.START_ONLY
        return SelectionState.FULL


@dataclass(frozen=True)
class SlotClick:
    selection: SelectionRange
    notice: str | None = None

    @property
    def rejected(self) -> bool:
        return self.notice is not None


@dataclass(frozen=True)
class GridSlot:
    index: int
    label: str
    status: SlotStatus


def derive_blocked_hours(
    intervals: Iterable[str],
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> frozenset[str]:
    """
    Collect hour labels covered by existing reservations.

    `intervals` are the stored interval strings of reservations already filtered
    to one (date, resource) and to occupying statuses. Each covers [start, end).
    Unparseable values are skipped with a warning so that legacy rows cannot
    break the grid.
    """
    blocked: set[str] = set()
    for text in intervals:
        parsed = parse_interval(text, hour_labels)
        if isinstance(parsed, IntervalParseFailure):
            logger.warning("skipping reservation interval %r: %s", text, parsed.reason)
            continue
        for index in range(parsed.start_index, parsed.end_index):
            blocked.add(hour_labels[index])
    return frozenset(blocked)


def handle_slot_click(
    label: str,
    index: int,
    selection: SelectionRange,
    blocked: frozenset[str] | set[str],
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> SlotClick:
    if label in blocked:
        return SlotClick(selection=selection)

    if selection.state in (SelectionState.EMPTY, SelectionState.FULL):
        return SlotClick(selection=SelectionRange(start=label))

    start_index = index_of(selection.start or "", hour_labels)
    if start_index is None or index < start_index:
        return SlotClick(selection=SelectionRange(start=label))
    if index == start_index:
        return SlotClick(selection=SelectionRange())

    # The closed span start..index includes the clicked slot itself.
    span = hour_labels[start_index : index + 1]
    if any(slot in blocked for slot in span):
        return SlotClick(selection=selection, notice=SELECTION_CONFLICT_NOTICE)
    return SlotClick(selection=replace(selection, end=label))


def is_selected(index: int, label: str, selection: SelectionRange, hour_labels: Sequence[str] = HOUR_LABELS) -> bool:
    if selection.start is None:
        return False
    if label in (selection.start, selection.end):
        return True
    if selection.end is None:
        return False
    start_index = index_of(selection.start, hour_labels)
    end_index = index_of(selection.end, hour_labels)
    if start_index is None or end_index is None:
        return False
    return start_index < index < end_index


def build_grid(
    blocked: frozenset[str] | set[str],
    selection: SelectionRange,
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> list[GridSlot]:
    slots: list[GridSlot] = []
    for index, label in enumerate(hour_labels):
        if label in blocked:
            status = SlotStatus.BOOKED
        elif is_selected(index, label, selection, hour_labels):
            status = SlotStatus.SELECTED
        else:
            status = SlotStatus.AVAILABLE
        slots.append(GridSlot(index=index, label=label, status=status))
    return slots
