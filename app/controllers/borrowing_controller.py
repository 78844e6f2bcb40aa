# app/controllers/borrowing_controller.py

from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from enum import Enum

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from app.domain.actor import ADMIN_ROLE
from app.errors import BorrowingError, StorageUnavailable
from app.services.borrowing_service import get_borrowing_service
from app.utils.auth import current_actor, role_required

borrowing_bp = Blueprint("borrowings", __name__, url_prefix="/borrowings")


# -----------------------------
# Helpers
# -----------------------------
def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _to_dict(record):
    return {k: _jsonable(v) for k, v in asdict(record).items()}


def _ok(data, code=200):
    return jsonify({"success": True, "data": data}), code


def _json_error(message, code=400, error_code="invalid"):
    return jsonify({"success": False, "code": error_code, "message": message}), code


def _json_body():
    """Gövde yoksa boş dict; JSON nesnesi değilse None."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _optional_int(data, key):
    """Yoksa None; varsa int olmalı (bool kabul edilmez)."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(key)
    return value


@borrowing_bp.errorhandler(BorrowingError)
def _handle_borrowing_error(e: BorrowingError):
    return _json_error(e.message, e.http_status, e.code)


@borrowing_bp.errorhandler(StorageUnavailable)
def _handle_storage_error(e: StorageUnavailable):
    return _json_error(e.message, e.http_status, e.code)


# -----------------------------
# User
# -----------------------------
@borrowing_bp.post("/requests")
@jwt_required()
def request_borrow():
    data = _json_body()
    if data is None:
        return _json_error("Gövde JSON nesnesi olmalı", 400)
    try:
        book_id = _optional_int(data, "book_id")
        days = _optional_int(data, "requested_days")
    except TypeError as e:
        return _json_error(f"{e} tam sayı olmalı", 400)
    if book_id is None:
        return _json_error("book_id zorunlu", 400)

    record = get_borrowing_service().request_borrow(current_actor(), book_id, days)
    return _ok(_to_dict(record), 201)


@borrowing_bp.post("/requests/<int:request_id>/cancel")
@jwt_required()
def cancel_request(request_id: int):
    record = get_borrowing_service().cancel_request(request_id, current_actor())
    return _ok(_to_dict(record))


@borrowing_bp.get("/my/requests")
@jwt_required()
def my_requests():
    records = get_borrowing_service().list_my_requests(current_actor().user_id)
    return _ok([_to_dict(r) for r in records])


@borrowing_bp.get("/my/borrowings")
@jwt_required()
def my_borrowings():
    records = get_borrowing_service().list_my_borrowings(current_actor().user_id)
    return _ok([_to_dict(r) for r in records])


@borrowing_bp.get("/my/history")
@jwt_required()
def my_history():
    records = get_borrowing_service().list_my_history(current_actor().user_id)
    return _ok([_to_dict(r) for r in records])


@borrowing_bp.get("/<int:borrowing_id>")
@jwt_required()
def borrowing_detail(borrowing_id: int):
    record = get_borrowing_service().get_borrowing(borrowing_id, current_actor())
    return _ok(_to_dict(record))


@borrowing_bp.post("/<int:borrowing_id>/return")
@jwt_required()
def return_borrowing(borrowing_id: int):
    data = _json_body()
    if data is None:
        return _json_error("Gövde JSON nesnesi olmalı", 400)
    notes = data.get("return_notes")
    if notes is not None and not isinstance(notes, str):
        return _json_error("return_notes metin olmalı", 400)

    record = get_borrowing_service().return_borrowing(borrowing_id, current_actor(), notes)
    return _ok(_to_dict(record))


@borrowing_bp.get("/availability/<int:book_id>")
@jwt_required()
def availability(book_id: int):
    result = get_borrowing_service().check_availability(book_id)
    return _ok(_to_dict(result))


# -----------------------------
# Admin
# -----------------------------
@borrowing_bp.get("/admin/pending")
@role_required(ADMIN_ROLE)
def pending_requests():
    records = get_borrowing_service().list_pending_requests()
    return _ok([_to_dict(r) for r in records])


@borrowing_bp.post("/admin/requests/<int:request_id>/process")
@role_required(ADMIN_ROLE)
def process_request(request_id: int):
    data = _json_body()
    if data is None:
        return _json_error("Gövde JSON nesnesi olmalı", 400)
    if "action" not in data:
        return _json_error("action zorunlu", 400)
    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        return _json_error("reason metin olmalı", 400)

    result = get_borrowing_service().process_request(
        request_id, current_actor(), data.get("action"), reason
    )
    return _ok({
        "request": _to_dict(result.request),
        "borrowing": _to_dict(result.borrowing) if result.borrowing else None,
    })


@borrowing_bp.get("/admin/overdue")
@role_required(ADMIN_ROLE)
def overdue_borrowings():
    records = get_borrowing_service().list_overdue_borrowings()
    return _ok([_to_dict(r) for r in records])


@borrowing_bp.post("/admin/overdue-report/refresh")
@role_required(ADMIN_ROLE)
def refresh_overdue_report():
    result = get_borrowing_service().refresh_overdue_reports()
    current_app.logger.info(f"[overdue_refresh] Manual run by admin={current_actor().user_id}")
    return _ok(result)


@borrowing_bp.get("/admin/overdue-report")
@role_required(ADMIN_ROLE)
def overdue_report():
    rows = get_borrowing_service().list_overdue_report()
    return _ok([
        {
            "id": r.id,
            "borrowing_id": r.borrowing_id,
            "days_overdue": r.days_overdue,
            "daily_fee": str(r.daily_fee),
            "amount": str(r.amount),
            "refreshed_at": r.refreshed_at.isoformat(),
        }
        for r in rows
    ])
