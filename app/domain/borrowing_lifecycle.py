"""
Ödünç (loan) yaşam döngüsü: active -> overdue -> returned.

`overdue` hiçbir yerde saklanmaz; her okuma (returned_at, due_date, now)
üçlüsünden türetir. Bu yüzden arka planda status çeviren bir job'a gerek yok.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from app.domain.fees import FeeSchedule, LateFee, fee_for_schedule, to_money
from app.domain.statuses import BorrowingStatus
from app.errors import InvalidState


def derive_status(returned_at: datetime | None, due_date: datetime, now: datetime) -> BorrowingStatus:
    if returned_at is not None:
        return BorrowingStatus.RETURNED
    if now >= due_date:
        return BorrowingStatus.OVERDUE
    return BorrowingStatus.ACTIVE


def due_date_for(borrowed_at: datetime, requested_days: int) -> datetime:
    return borrowed_at + timedelta(days=requested_days)


def current_fee(borrowing, now: datetime, schedule: FeeSchedule) -> LateFee:
    """İade edilmişse iadede sabitlenen değer, edilmemişse şu ana göre hesap."""
    if borrowing.returned_at is not None:
        return LateFee(
            days_overdue=int(borrowing.days_overdue or 0),
            amount=to_money(borrowing.late_fee_amount or 0),
        )
    rate = borrowing.late_fee_per_day if borrowing.late_fee_per_day is not None else schedule.fee_per_day
    return fee_for_schedule(borrowing.due_date, now, FeeSchedule(to_money(rate), schedule.max_fee))


def plan_return(borrowing, now: datetime, schedule: FeeSchedule, return_notes: str | None = None) -> dict:
    """
    İade için yazılacak kolonları hesaplar. Çift iade reddedilir
    (sessizce başarılı sayılmaz).
    """
    if borrowing.returned_at is not None:
        raise InvalidState("Bu kitap zaten iade edilmiş")

    fee = current_fee(borrowing, now, schedule)
    return {
        "returned_at": now,
        "days_overdue": fee.days_overdue,
        "late_fee_amount": fee.amount,
        "return_notes": return_notes,
    }


@dataclass(frozen=True)
class BorrowingRecord:
    id: int
    book_id: int
    user_id: int
    request_id: int | None
    borrowed_at: datetime
    due_date: datetime
    returned_at: datetime | None
    status: BorrowingStatus
    days_overdue: int
    late_fee_per_day: Decimal
    late_fee_amount: Decimal
    borrow_notes: str | None
    return_notes: str | None

    @classmethod
    def from_model(cls, borrowing, now: datetime, schedule: FeeSchedule) -> "BorrowingRecord":
        fee = current_fee(borrowing, now, schedule)
        return cls(
            id=borrowing.id,
            book_id=borrowing.book_id,
            user_id=borrowing.user_id,
            request_id=borrowing.request_id,
            borrowed_at=borrowing.borrowed_at,
            due_date=borrowing.due_date,
            returned_at=borrowing.returned_at,
            status=derive_status(borrowing.returned_at, borrowing.due_date, now),
            days_overdue=fee.days_overdue,
            late_fee_per_day=to_money(
                borrowing.late_fee_per_day if borrowing.late_fee_per_day is not None else schedule.fee_per_day
            ),
            late_fee_amount=fee.amount,
            borrow_notes=borrowing.borrow_notes,
            return_notes=borrowing.return_notes,
        )
