from dataclasses import dataclass
from decimal import Decimal

from app.domain.fees import FeeSchedule, to_money


@dataclass(frozen=True)
class BorrowingPolicy:
    min_days: int
    max_days: int
    default_days: int
    max_active_borrowings: int
    fees: FeeSchedule

    @classmethod
    def from_config(cls, config) -> "BorrowingPolicy":
        cap = config.get("LATE_FEE_CAP")
        return cls(
            min_days=int(config["BORROW_MIN_DAYS"]),
            max_days=int(config["BORROW_MAX_DAYS"]),
            default_days=int(config["BORROW_DEFAULT_DAYS"]),
            max_active_borrowings=int(config["MAX_ACTIVE_BORROWINGS"]),
            fees=FeeSchedule(
                fee_per_day=to_money(config["LATE_FEE_PER_DAY"]),
                max_fee=to_money(cap) if cap is not None else None,
            ),
        )

    @property
    def fee_per_day(self) -> Decimal:
        return self.fees.fee_per_day
