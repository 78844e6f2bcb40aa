# app/errors.py
"""
Ödünç çekirdeğinin domain hataları.

Hepsi BorrowingError (ValueError) türevi; controller tarafı `code` ve
`http_status` üzerinden JSON cevabı üretir. StorageUnavailable ayrı tutuluyor:
iş kuralı değil, altyapı hatası (çağıran tekrar deneyebilir).
"""


class BorrowingError(ValueError):
    code = "borrowing_error"
    http_status = 400
    default_message = "İşlem yapılamadı"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BookNotFound(BorrowingError):
    code = "book_not_found"
    http_status = 404
    default_message = "Kitap bulunamadı"


class RequestNotFound(BorrowingError):
    code = "request_not_found"
    http_status = 404
    default_message = "Ödünç talebi bulunamadı"


class BorrowingNotFound(BorrowingError):
    code = "borrowing_not_found"
    http_status = 404
    default_message = "Ödünç kaydı bulunamadı"


class InvalidDuration(BorrowingError):
    code = "invalid_duration"
    default_message = "Geçersiz ödünç süresi"


class InvalidAction(BorrowingError):
    code = "invalid_action"
    default_message = "action 'approve' ya da 'reject' olmalı"


class DuplicatePendingRequest(BorrowingError):
    code = "duplicate_pending_request"
    http_status = 409
    default_message = "Bu kitap için zaten bekleyen bir talebin var"


class AlreadyBorrowed(BorrowingError):
    code = "already_borrowed"
    http_status = 409
    default_message = "Bu kitap şu anda zaten sende"


class BorrowLimitReached(BorrowingError):
    code = "borrow_limit_reached"
    http_status = 409
    default_message = "Aktif ödünç limitine ulaştın"


class NotOwner(BorrowingError):
    code = "not_owner"
    http_status = 403
    default_message = "Bu kayıt sana ait değil"


class InvalidState(BorrowingError):
    code = "invalid_state"
    http_status = 409
    default_message = "Kayıt bu işlem için uygun durumda değil"


class MissingReason(BorrowingError):
    code = "missing_reason"
    default_message = "Reddetmek için gerekçe zorunlu"


class NoCopiesAvailable(BorrowingError):
    code = "no_copies_available"
    http_status = 409
    default_message = "Bu kitabın boşta kopyası yok"


class StorageUnavailable(RuntimeError):
    code = "storage_unavailable"
    http_status = 503

    def __init__(self, message: str = "Veritabanına şu anda ulaşılamıyor"):
        self.message = message
        super().__init__(message)
