from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.domain.actor import Actor
from app.domain.availability import availability_for, compute_availability
from app.domain.borrowing_lifecycle import BorrowingRecord, current_fee, due_date_for, plan_return
from app.domain.policy import BorrowingPolicy
from app.domain.request_lifecycle import (
    BorrowRequestRecord,
    check_transition,
    plan_approve,
    plan_cancel,
    plan_reject,
    resolve_duration,
)
from app.domain.statuses import BorrowRequestStatus, ProcessAction
from app.errors import (
    AlreadyBorrowed,
    BookNotFound,
    BorrowingError,
    BorrowingNotFound,
    BorrowLimitReached,
    DuplicatePendingRequest,
    InvalidState,
    NoCopiesAvailable,
    NotOwner,
    RequestNotFound,
    StorageUnavailable,
)
from app.extensions import db
from app.models.borrow_request import BorrowRequest
from app.models.borrowing import Borrowing
from app.models.overdue_report import OverdueReport
from app.repositories.book_repo import BookRepo
from app.repositories.borrow_request_repo import BorrowRequestRepo
from app.repositories.borrowing_repo import BorrowingRepo
from app.repositories.overdue_report_repo import OverdueReportRepo
from app.services.list_cache import PENDING_REQUESTS, ListCache, user_history_key, user_requests_key
from app.utils.clock import utcnow

APPROVAL_NOTE = "Approved by admin"


@dataclass(frozen=True)
class BookAvailability:
    book_id: int
    total_copies: int
    active_count: int
    available_copies: int
    is_available: bool
    total_borrowings: int
    average_borrow_days: int


@dataclass(frozen=True)
class ProcessResult:
    request: BorrowRequestRecord
    borrowing: BorrowingRecord | None = None


class BorrowingService:
    """
    Ödünç çekirdeği. Talep oluşturma/iptal, admin onay/red, iade ve
    listeler burada; kalıcılık repository'ler üzerinden.

    Onay ve iade tek transaction içinde çalışır:
    - onay: kitap satırı kilitlenir, aktif ödünç sayısı kilit altında tekrar
      okunur, kopya yoksa hiçbir şey yazılmadan NoCopiesAvailable.
    - iade: returned_at NULL ise yazılır, değilse InvalidState.
    """

    def __init__(self, policy: BorrowingPolicy, clock: Callable = utcnow, cache: ListCache | None = None):
        self.policy = policy
        self.clock = clock
        self.cache = cache if cache is not None else ListCache()

    @classmethod
    def from_config(cls, config, clock: Callable = utcnow) -> "BorrowingService":
        return cls(
            policy=BorrowingPolicy.from_config(config),
            clock=clock,
            cache=ListCache(ttl_seconds=float(config.get("LIST_CACHE_TTL_SECONDS", 30))),
        )

    # -----------------------------
    # Transaction helpers
    # -----------------------------
    @contextmanager
    def _unit_of_work(self, commit: bool = True):
        try:
            yield
            if commit:
                db.session.commit()
        except (BorrowingError, IntegrityError):
            db.session.rollback()
            raise
        except (OperationalError, PoolTimeoutError, DBAPIError) as e:
            db.session.rollback()
            current_app.logger.exception(f"[borrowing] Veritabanı hatası: {e}")
            raise StorageUnavailable() from e
        except Exception:
            db.session.rollback()
            raise

    @staticmethod
    def _get_request(request_id: int) -> BorrowRequest:
        request = BorrowRequestRepo.get(request_id)
        if not request:
            raise RequestNotFound()
        return request

    @staticmethod
    def _get_borrowing(borrowing_id: int) -> Borrowing:
        borrowing = BorrowingRepo.get(borrowing_id)
        if not borrowing:
            raise BorrowingNotFound()
        return borrowing

    def _record(self, borrowing: Borrowing, now) -> BorrowingRecord:
        return BorrowingRecord.from_model(borrowing, now, self.policy.fees)

    def _invalidate_requests(self, user_id: int) -> None:
        self.cache.invalidate(PENDING_REQUESTS, user_requests_key(user_id))

    # -----------------------------
    # Requests (user)
    # -----------------------------
    def request_borrow(self, actor: Actor, book_id: int, requested_days: int | None = None) -> BorrowRequestRecord:
        days = resolve_duration(requested_days, self.policy)
        now = self.clock()

        try:
            with self._unit_of_work():
                if not BookRepo.get(book_id):
                    raise BookNotFound()

                if BorrowRequestRepo.find_pending(actor.user_id, book_id):
                    raise DuplicatePendingRequest()

                if BorrowingRepo.find_unreturned(actor.user_id, book_id):
                    raise AlreadyBorrowed()

                limit = self.policy.max_active_borrowings
                if limit > 0 and len(BorrowingRepo.list_unreturned_by_user(actor.user_id)) >= limit:
                    raise BorrowLimitReached(f"En fazla {limit} aktif ödünç olabilir")

                request = BorrowRequestRepo.add(BorrowRequest(
                    user_id=actor.user_id,
                    book_id=book_id,
                    status=BorrowRequestStatus.PENDING.value,
                    requested_at=now,
                    requested_days=days,
                ))
                record = BorrowRequestRecord.from_model(request)
        except IntegrityError as e:
            # eşzamanlı ikinci pending insert'ü unique index yakaladı
            current_app.logger.warning(
                f"[borrowing] Duplicate pending request (index) user={actor.user_id} book={book_id}"
            )
            raise DuplicatePendingRequest() from e

        self._invalidate_requests(actor.user_id)
        current_app.logger.info(
            f"[borrowing] Request {record.id} created user={actor.user_id} book={book_id} days={days}"
        )
        return record

    def cancel_request(self, request_id: int, actor: Actor) -> BorrowRequestRecord:
        now = self.clock()
        with self._unit_of_work():
            request = self._get_request(request_id)
            values = plan_cancel(request, actor.user_id, now)
            if not BorrowRequestRepo.transition_from_pending(request.id, values):
                raise InvalidState("Talep bu arada işlenmiş")
            db.session.refresh(request)
            record = BorrowRequestRecord.from_model(request)

        self._invalidate_requests(record.user_id)
        current_app.logger.info(f"[borrowing] Request {record.id} cancelled by user={actor.user_id}")
        return record

    # -----------------------------
    # Requests (admin)
    # -----------------------------
    def process_request(self, request_id: int, actor: Actor, action, reason: str | None = None) -> ProcessResult:
        """
        Admin kararı. Rol kontrolü çağıran katmanda yapılmış olmalı.
        approve kopyasızlıkta NoCopiesAvailable atar ve talep pending kalır.
        """
        action = action if isinstance(action, ProcessAction) else ProcessAction.parse(action)
        if action is ProcessAction.REJECT:
            return self._reject(request_id, actor, reason)
        return self._approve(request_id, actor)

    def _reject(self, request_id: int, actor: Actor, reason: str | None) -> ProcessResult:
        now = self.clock()
        with self._unit_of_work():
            request = self._get_request(request_id)
            values = plan_reject(request, actor.user_id, reason, now)
            if not BorrowRequestRepo.transition_from_pending(request.id, values):
                raise InvalidState("Talep bu arada işlenmiş")
            db.session.refresh(request)
            record = BorrowRequestRecord.from_model(request)

        self._invalidate_requests(record.user_id)
        current_app.logger.info(f"[borrowing] Request {record.id} rejected by admin={actor.user_id}")
        return ProcessResult(request=record)

    def _approve(self, request_id: int, actor: Actor) -> ProcessResult:
        now = self.clock()
        try:
            with self._unit_of_work():
                request = self._get_request(request_id)
                check_transition(request.status, BorrowRequestStatus.APPROVED)

                # kilit: aynı kitabın diğer onayları commit/rollback'e kadar bekler
                if not BookRepo.lock_for_borrowing(request.book_id):
                    raise BookNotFound()
                book = BookRepo.get(request.book_id)

                # cache'e bakılmaz, sayım kilit altında DB'den
                active = BorrowingRepo.count_unreturned_for_book(book.id)
                availability = compute_availability(book.total_copies, active)
                if not availability.is_available:
                    raise NoCopiesAvailable()

                values = plan_approve(request, actor.user_id, now)
                if not BorrowRequestRepo.transition_from_pending(request.id, values):
                    raise InvalidState("Talep bu arada işlenmiş")

                borrowing = BorrowingRepo.add(Borrowing(
                    user_id=request.user_id,
                    book_id=request.book_id,
                    request_id=request.id,
                    borrowed_at=now,
                    due_date=due_date_for(now, request.requested_days),
                    late_fee_per_day=self.policy.fee_per_day,
                    days_overdue=0,
                    late_fee_amount=Decimal("0.00"),
                    borrow_notes=APPROVAL_NOTE,
                ))
                db.session.refresh(request)
                request_record = BorrowRequestRecord.from_model(request)
                borrowing_record = self._record(borrowing, now)
        except NoCopiesAvailable:
            current_app.logger.warning(f"[borrowing] Request {request_id} not approved: no copies available")
            raise

        self._invalidate_requests(request_record.user_id)
        current_app.logger.info(
            f"[borrowing] Request {request_record.id} approved by admin={actor.user_id}; "
            f"borrowing {borrowing_record.id} due {borrowing_record.due_date:%Y-%m-%d %H:%M}"
        )
        return ProcessResult(request=request_record, borrowing=borrowing_record)

    # -----------------------------
    # Borrowings
    # -----------------------------
    def return_borrowing(self, borrowing_id: int, actor: Actor, return_notes: str | None = None) -> BorrowingRecord:
        now = self.clock()
        with self._unit_of_work():
            borrowing = self._get_borrowing(borrowing_id)

            # admin değilse kendi kaydı olmalı
            if not actor.is_admin and borrowing.user_id != actor.user_id:
                raise NotOwner()

            values = plan_return(borrowing, now, self.policy.fees, return_notes)
            if not BorrowingRepo.mark_returned(borrowing.id, values):
                raise InvalidState("Bu kitap zaten iade edilmiş")
            db.session.refresh(borrowing)
            record = self._record(borrowing, now)

        self.cache.invalidate(user_history_key(record.user_id))
        current_app.logger.info(
            f"[borrowing] Borrowing {record.id} returned by user={actor.user_id} "
            f"days_overdue={record.days_overdue} fee={record.late_fee_amount}"
        )
        return record

    def get_borrowing(self, borrowing_id: int, actor: Actor) -> BorrowingRecord:
        now = self.clock()
        with self._unit_of_work(commit=False):
            borrowing = self._get_borrowing(borrowing_id)
            if not actor.is_admin and borrowing.user_id != actor.user_id:
                raise NotOwner()
            return self._record(borrowing, now)

    def check_availability(self, book_id: int) -> BookAvailability:
        now = self.clock()
        with self._unit_of_work(commit=False):
            book = BookRepo.get(book_id)
            if not book:
                raise BookNotFound()
            availability = availability_for(book.total_copies, BorrowingRepo.list_unreturned_for_book(book_id), now)
            stats = BorrowingRepo.stats_for_book(book_id, now)

        return BookAvailability(
            book_id=book_id,
            total_copies=availability.total_copies,
            active_count=availability.active_count,
            available_copies=availability.available_copies,
            is_available=availability.is_available,
            total_borrowings=stats["total_borrowings"],
            average_borrow_days=stats["average_borrow_days"],
        )

    # -----------------------------
    # Listeler
    # -----------------------------
    def list_my_requests(self, user_id: int) -> list[BorrowRequestRecord]:
        def load():
            with self._unit_of_work(commit=False):
                return tuple(BorrowRequestRecord.from_model(r) for r in BorrowRequestRepo.list_by_user(user_id))

        return list(self.cache.get_or_load(user_requests_key(user_id), load))

    def list_pending_requests(self) -> list[BorrowRequestRecord]:
        def load():
            with self._unit_of_work(commit=False):
                return tuple(BorrowRequestRecord.from_model(r) for r in BorrowRequestRepo.list_pending())

        return list(self.cache.get_or_load(PENDING_REQUESTS, load))

    def list_my_borrowings(self, user_id: int) -> list[BorrowingRecord]:
        # zamana bağlı (overdue/ücret), cache yok
        now = self.clock()
        with self._unit_of_work(commit=False):
            return [self._record(b, now) for b in BorrowingRepo.list_unreturned_by_user(user_id)]

    def list_my_history(self, user_id: int) -> list[BorrowingRecord]:
        def load():
            now = self.clock()
            with self._unit_of_work(commit=False):
                return tuple(self._record(b, now) for b in BorrowingRepo.list_returned_by_user(user_id))

        return list(self.cache.get_or_load(user_history_key(user_id), load))

    def list_overdue_borrowings(self) -> list[BorrowingRecord]:
        now = self.clock()
        with self._unit_of_work(commit=False):
            return [self._record(b, now) for b in BorrowingRepo.find_overdue(now)]

    # -----------------------------
    # Raporlama (job)
    # -----------------------------
    def refresh_overdue_reports(self) -> dict:
        """
        Denormalize gecikme tablosunu canlı türetmeyle aynı hesapla yeniler.
        Artık gecikmede olmayan (iade edilmiş) kayıtların satırı silinir.
        """
        now = self.clock()
        with self._unit_of_work():
            overdue = BorrowingRepo.find_overdue(now)
            existing = OverdueReportRepo.by_borrowing_ids()

            for b in overdue:
                fee = current_fee(b, now, self.policy.fees)
                row = existing.get(b.id)
                if not row:
                    OverdueReportRepo.add(OverdueReport(
                        borrowing_id=b.id,
                        days_overdue=fee.days_overdue,
                        daily_fee=b.late_fee_per_day,
                        amount=fee.amount,
                        refreshed_at=now,
                    ))
                else:
                    row.days_overdue = fee.days_overdue
                    row.daily_fee = b.late_fee_per_day
                    row.amount = fee.amount
                    row.refreshed_at = now

            stale = set(existing) - {b.id for b in overdue}
            cleared = OverdueReportRepo.delete_for_borrowings(stale)

        # toplu yazma: liste cache'i tamamen düşür
        self.cache.clear()
        current_app.logger.info(f"[overdue_refresh] updated={len(overdue)} cleared={cleared}")
        return {"updated": len(overdue), "cleared": cleared}

    def list_overdue_report(self) -> list[OverdueReport]:
        with self._unit_of_work(commit=False):
            return OverdueReportRepo.list_all()


def init_borrowing_service(app, clock: Callable = utcnow) -> BorrowingService:
    service = BorrowingService.from_config(app.config, clock=clock)
    app.extensions["borrowing_service"] = service
    return service


def get_borrowing_service() -> BorrowingService:
    return current_app.extensions["borrowing_service"]
