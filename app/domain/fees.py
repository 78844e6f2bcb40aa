from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")
_ZERO = timedelta(0)


@dataclass(frozen=True)
class FeeSchedule:
    fee_per_day: Decimal
    max_fee: Decimal | None = None


@dataclass(frozen=True)
class LateFee:
    days_overdue: int
    amount: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def overdue_days(due_date: datetime, as_of: datetime) -> int:
    """
    Başlamış her gecikme günü tam gün sayılır (ceil).
    due_date anında ya da öncesinde 0.
    """
    delta = as_of - due_date
    if delta <= _ZERO:
        return 0
    partial = 1 if (delta.seconds or delta.microseconds) else 0
    return delta.days + partial


def compute_late_fee(due_date: datetime, as_of: datetime, fee_per_day, max_fee=None) -> LateFee:
    days = overdue_days(due_date, as_of)
    amount = to_money(Decimal(str(fee_per_day)) * days)
    if max_fee is not None:
        amount = min(amount, to_money(max_fee))
    return LateFee(days_overdue=days, amount=amount)


def fee_for_schedule(due_date: datetime, as_of: datetime, schedule: FeeSchedule) -> LateFee:
    return compute_late_fee(due_date, as_of, schedule.fee_per_day, schedule.max_fee)
