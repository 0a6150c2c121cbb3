from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import InvalidRangeError, MissingStartError
from .intervals import HOUR_LABELS, IntervalParseFailure, format_interval, index_of, label_for_end, parse_interval
from .slot_grid import SelectionRange


@dataclass(frozen=True)
class Candidate:
    """Half-open range [start_index, end_index) about to be committed."""

    start_index: int
    end_index: int
    start_label: str
    end_label: str

    @property
    def interval(self) -> str:
        return format_interval(self.start_label, self.end_label)


@dataclass(frozen=True)
class CandidateCheck:
    ok: bool
    conflicting_interval: str | None = None


def overlaps(candidate_start: int, candidate_end: int, existing_start: int, existing_end: int) -> bool:
    """Half-open intersection test; back-to-back ranges do not overlap."""
    return candidate_start < existing_end and existing_start < candidate_end


def resolve_candidate(selection: SelectionRange, hour_labels: Sequence[str] = HOUR_LABELS) -> Candidate:
    """
    Turn a selection into the range to commit.

    Without an end the booking lasts exactly one hour; past the last slot the
    end label becomes the end-of-day sentinel.
    """
    start_index = index_of(selection.start, hour_labels) if selection.start else None
    if start_index is None:
        raise MissingStartError("a start slot must be selected")

    if selection.end is not None:
        end_index = index_of(selection.end, hour_labels)
        if end_index is None:
            raise MissingStartError(f"unknown end slot {selection.end!r}")
        end_label = selection.end
        if end_index <= start_index:
            raise InvalidRangeError(f"end slot {selection.end!r} must come after start {selection.start!r}")
    else:
        end_index = start_index + 1
        end_label = label_for_end(end_index, hour_labels)

    return Candidate(
        start_index=start_index,
        end_index=end_index,
        start_label=hour_labels[start_index],
        end_label=end_label,
    )


def conflicts_with_blocked(
    candidate: Candidate,
    blocked: Iterable[str],
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> bool:
    """Optimistic check against the blocked set the grid was rendered with."""
    for label in blocked:
        slot_index = index_of(label, hour_labels)
        if slot_index is not None and candidate.start_index <= slot_index < candidate.end_index:
            return True
    return False


def validate_candidate(
    candidate: Candidate,
    fresh_intervals: Iterable[str],
    hour_labels: Sequence[str] = HOUR_LABELS,
) -> CandidateCheck:
    """
    Last-moment check against freshly fetched reservation intervals.

    This narrows the race with concurrent writers; a write landing between this
    check and the commit is not detected.
    """
    for text in fresh_intervals:
        parsed = parse_interval(text, hour_labels)
        if isinstance(parsed, IntervalParseFailure):
            continue
        if overlaps(candidate.start_index, candidate.end_index, parsed.start_index, parsed.end_index):
            return CandidateCheck(ok=False, conflicting_interval=text)
    return CandidateCheck(ok=True)
