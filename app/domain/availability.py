from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from app.domain.borrowing_lifecycle import derive_status
from app.domain.statuses import BorrowingStatus


@dataclass(frozen=True)
class Availability:
    total_copies: int
    active_count: int
    available_copies: int
    is_available: bool


def compute_availability(total_copies: int, active_count: int) -> Availability:
    # overdue kopyalar da dışarıda sayılır, active_count ikisini de kapsar
    available = max(0, total_copies - active_count)
    return Availability(
        total_copies=total_copies,
        active_count=active_count,
        available_copies=available,
        is_available=available > 0,
    )


def availability_for(total_copies: int, borrowings: Iterable, now: datetime) -> Availability:
    active = sum(
        1 for b in borrowings
        if derive_status(b.returned_at, b.due_date, now) is not BorrowingStatus.RETURNED
    )
    return compute_availability(total_copies, active)
