from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.domain.borrowing_lifecycle import (
    BorrowingRecord,
    derive_status,
    due_date_for,
    plan_return,
)
from app.domain.fees import FeeSchedule
from app.domain.statuses import BorrowingStatus
from app.errors import InvalidState

BORROWED = datetime(2025, 3, 1, 9, 0, 0)
DUE = BORROWED + timedelta(days=14)
SCHEDULE = FeeSchedule(fee_per_day=Decimal("0.50"))


def loan(**overrides):
    fields = dict(
        id=1, book_id=3, user_id=1, request_id=5,
        borrowed_at=BORROWED, due_date=DUE, returned_at=None,
        late_fee_per_day=Decimal("0.50"), days_overdue=0, late_fee_amount=Decimal("0.00"),
        borrow_notes="Approved by admin", return_notes=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_due_date_is_borrowed_at_plus_days():
    assert due_date_for(BORROWED, 14) == DUE


@pytest.mark.parametrize("now, expected", [
    (DUE - timedelta(seconds=1), BorrowingStatus.ACTIVE),
    (DUE, BorrowingStatus.OVERDUE),
    (DUE + timedelta(days=9), BorrowingStatus.OVERDUE),
])
def test_status_follows_clock(now, expected):
    assert derive_status(None, DUE, now) is expected


def test_returned_wins_over_due_date():
    assert derive_status(DUE + timedelta(days=3), DUE, DUE + timedelta(days=30)) is BorrowingStatus.RETURNED


def test_return_on_time_has_no_fee():
    values = plan_return(loan(), DUE - timedelta(days=1), SCHEDULE, "fine condition")
    assert values["days_overdue"] == 0
    assert values["late_fee_amount"] == Decimal("0.00")
    assert values["return_notes"] == "fine condition"


def test_late_return_fixes_fee():
    values = plan_return(loan(), DUE + timedelta(days=3), SCHEDULE)
    assert values["days_overdue"] == 3
    assert values["late_fee_amount"] == Decimal("1.50")
    assert values["returned_at"] == DUE + timedelta(days=3)


def test_rate_captured_on_loan_is_used():
    values = plan_return(loan(late_fee_per_day=Decimal("2.00")), DUE + timedelta(days=2), SCHEDULE)
    assert values["late_fee_amount"] == Decimal("4.00")


def test_second_return_is_rejected():
    with pytest.raises(InvalidState):
        plan_return(loan(returned_at=DUE), DUE + timedelta(days=1), SCHEDULE)


def test_record_shows_live_fee_while_unreturned():
    record = BorrowingRecord.from_model(loan(), DUE + timedelta(days=4, hours=1), SCHEDULE)
    assert record.status is BorrowingStatus.OVERDUE
    assert record.days_overdue == 5
    assert record.late_fee_amount == Decimal("2.50")


def test_record_keeps_fee_frozen_after_return():
    returned = loan(returned_at=DUE + timedelta(days=2), days_overdue=2, late_fee_amount=Decimal("1.00"))
    record = BorrowingRecord.from_model(returned, DUE + timedelta(days=60), SCHEDULE)
    assert record.status is BorrowingStatus.RETURNED
    assert record.days_overdue == 2
    assert record.late_fee_amount == Decimal("1.00")
