from enum import Enum

from app.errors import InvalidAction


class BorrowRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class BorrowingStatus(str, Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    RETURNED = "returned"


class ProcessAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @classmethod
    def parse(cls, raw) -> "ProcessAction":
        """'approve'/'approved' ve 'reject'/'rejected' kabul edilir."""
        value = (raw or "").strip().lower() if isinstance(raw, str) else ""
        aliases = {"approved": "approve", "rejected": "reject"}
        value = aliases.get(value, value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidAction(f"Geçersiz action: {raw!r}") from None
