import itertools

import pytest
from rental_booking.domain.errors import InvalidRangeError, MissingStartError
from rental_booking.domain.services import (
    conflicts_with_blocked,
    overlaps,
    resolve_candidate,
    validate_candidate,
)
from rental_booking.domain.slot_grid import SelectionRange


def _ranges() -> list[tuple[int, int]]:
    return [(a, b) for a, b in itertools.combinations(range(0, 25, 2), 2)]


def test_overlaps_is_symmetric() -> None:
    for (a0, a1), (b0, b1) in itertools.product(_ranges(), repeat=2):
        assert overlaps(a0, a1, b0, b1) == overlaps(b0, b1, a0, a1)


def test_touching_or_disjoint_ranges_never_overlap() -> None:
    for (a0, a1), (b0, b1) in itertools.product(_ranges(), repeat=2):
        if a1 <= b0 or b1 <= a0:
            assert overlaps(a0, a1, b0, b1) is False


def test_back_to_back_bookings_do_not_conflict() -> None:
    assert overlaps(10, 12, 12, 14) is False
    assert overlaps(10, 13, 12, 14) is True


def test_resolve_candidate_defaults_to_one_hour() -> None:
    candidate = resolve_candidate(SelectionRange(start="14:00"))
    assert (candidate.start_index, candidate.end_index) == (14, 15)
    assert candidate.interval == "14:00 - 15:00"


def test_resolve_candidate_at_last_slot_uses_end_of_day() -> None:
    candidate = resolve_candidate(SelectionRange(start="23:00"))
    assert candidate.end_index == 24
    assert candidate.interval == "23:00 - 24:00"


def test_resolve_candidate_requires_start() -> None:
    with pytest.raises(MissingStartError):
        resolve_candidate(SelectionRange())


@pytest.mark.parametrize("start, end", [("12:00", "10:00"), ("10:00", "10:00")])
def test_resolve_candidate_rejects_end_not_after_start(start: str, end: str) -> None:
    with pytest.raises(InvalidRangeError):
        resolve_candidate(SelectionRange(start=start, end=end))


def test_conflicts_with_blocked_checks_half_open_range() -> None:
    candidate = resolve_candidate(SelectionRange(start="10:00", end="12:00"))
    assert conflicts_with_blocked(candidate, {"11:00"}) is True
    assert conflicts_with_blocked(candidate, {"12:00", "09:00"}) is False


def test_validate_candidate_detects_fresh_overlap() -> None:
    candidate = resolve_candidate(SelectionRange(start="14:00", end="16:00"))
    check = validate_candidate(candidate, ["08:00 - 10:00", "15:00 - 17:00"])
    assert check.ok is False
    assert check.conflicting_interval == "15:00 - 17:00"


def test_validate_candidate_ignores_unparseable_rows() -> None:
    candidate = resolve_candidate(SelectionRange(start="10:00", end="12:00"))
    check = validate_candidate(candidate, ["UNSELECTED", "broken", "08:00 - 10:00", "12:00-14:00"])
    assert check.ok is True
