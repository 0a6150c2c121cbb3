from typing import Optional, Sequence

from .intervals import HOUR_LABELS, index_of
from .slot_grid import SelectionRange


def price(start_index: Optional[int], end_index: Optional[int], hourly_rate: int) -> int:
    """Total in the smallest currency unit. A lone start bills the one-hour minimum."""
    if start_index is None:
        return 0
    if end_index is None:
        return hourly_rate
    return (end_index - start_index) * hourly_rate


def price_selection(
    selection: SelectionRange,
    hourly_rate: int,
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> int:
    start_index = index_of(selection.start, hour_labels) if selection.start else None
    end_index = index_of(selection.end, hour_labels) if selection.end else None
    return price(start_index, end_index, hourly_rate)
