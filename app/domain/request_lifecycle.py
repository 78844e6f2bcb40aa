"""
Ödünç talebi durum makinesi.

    pending -> approved | rejected | cancelled

Üç hedef durum da terminal. Buradaki fonksiyonlar sadece kuralı kontrol edip
yazılacak kolonları döner; yazmayı (pending'e koşullu UPDATE) repo yapar.
"""
from dataclasses import dataclass
from datetime import datetime

from app.domain.policy import BorrowingPolicy
from app.domain.statuses import BorrowRequestStatus
from app.errors import InvalidDuration, InvalidState, MissingReason, NotOwner

ALLOWED_TRANSITIONS = {
    BorrowRequestStatus.PENDING: frozenset({
        BorrowRequestStatus.APPROVED,
        BorrowRequestStatus.REJECTED,
        BorrowRequestStatus.CANCELLED,
    }),
    BorrowRequestStatus.APPROVED: frozenset(),
    BorrowRequestStatus.REJECTED: frozenset(),
    BorrowRequestStatus.CANCELLED: frozenset(),
}


def resolve_duration(requested_days, policy: BorrowingPolicy) -> int:
    if requested_days is None:
        return policy.default_days
    # bool da int sayılıyor, True -> 1 gün olmasın
    if isinstance(requested_days, bool) or not isinstance(requested_days, int):
        raise InvalidDuration("requested_days tam sayı olmalı")
    if not policy.min_days <= requested_days <= policy.max_days:
        raise InvalidDuration(
            f"requested_days {policy.min_days}-{policy.max_days} aralığında olmalı"
        )
    return requested_days


def check_transition(current, target: BorrowRequestStatus) -> None:
    current = BorrowRequestStatus(current)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidState(f"Talep '{current.value}' durumunda, '{target.value}' yapılamaz")


def ensure_owner(request, user_id: int) -> None:
    if request.user_id != user_id:
        raise NotOwner("Sadece kendi talebini iptal edebilirsin")


def plan_cancel(request, user_id: int, now: datetime) -> dict:
    ensure_owner(request, user_id)
    check_transition(request.status, BorrowRequestStatus.CANCELLED)
    return {
        "status": BorrowRequestStatus.CANCELLED.value,
        "processed_at": now,
        "processed_by": user_id,
    }


def plan_reject(request, admin_id: int, reason: str | None, now: datetime) -> dict:
    check_transition(request.status, BorrowRequestStatus.REJECTED)
    reason = reason.strip() if isinstance(reason, str) else ""
    if not reason:
        raise MissingReason()
    return {
        "status": BorrowRequestStatus.REJECTED.value,
        "processed_at": now,
        "processed_by": admin_id,
        "rejection_reason": reason,
    }


def plan_approve(request, admin_id: int, now: datetime) -> dict:
    check_transition(request.status, BorrowRequestStatus.APPROVED)
    return {
        "status": BorrowRequestStatus.APPROVED.value,
        "processed_at": now,
        "processed_by": admin_id,
    }


@dataclass(frozen=True)
class BorrowRequestRecord:
    id: int
    book_id: int
    user_id: int
    status: BorrowRequestStatus
    requested_at: datetime
    requested_days: int
    processed_at: datetime | None
    processed_by: int | None
    rejection_reason: str | None

    @classmethod
    def from_model(cls, request) -> "BorrowRequestRecord":
        return cls(
            id=request.id,
            book_id=request.book_id,
            user_id=request.user_id,
            status=BorrowRequestStatus(request.status),
            requested_at=request.requested_at,
            requested_days=request.requested_days,
            processed_at=request.processed_at,
            processed_by=request.processed_by,
            rejection_reason=request.rejection_reason,
        )
