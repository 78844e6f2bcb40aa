from datetime import datetime, timedelta
from types import SimpleNamespace

from app.domain.availability import availability_for, compute_availability

NOW = datetime(2025, 3, 10, 10, 0, 0)


def loan(due_in_days, returned=False):
    return SimpleNamespace(
        due_date=NOW + timedelta(days=due_in_days),
        returned_at=NOW - timedelta(hours=1) if returned else None,
    )


def test_free_copies_are_available():
    a = compute_availability(3, 1)
    assert (a.total_copies, a.active_count, a.available_copies, a.is_available) == (3, 1, 2, True)


def test_all_copies_out():
    a = compute_availability(1, 1)
    assert a.available_copies == 0
    assert a.is_available is False


def test_available_never_negative():
    a = compute_availability(2, 5)
    assert a.available_copies == 0
    assert a.is_available is False


def test_overdue_loans_still_hold_a_copy():
    borrowings = [loan(-3), loan(4)]
    a = availability_for(2, borrowings, NOW)
    assert a.active_count == 2
    assert a.is_available is False


def test_returned_loans_free_their_copy():
    borrowings = [loan(-3, returned=True), loan(4)]
    a = availability_for(2, borrowings, NOW)
    assert a.active_count == 1
    assert a.available_copies == 1
