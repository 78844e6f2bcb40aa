from sqlalchemy import update

from app.models.borrow_request import BorrowRequest, PENDING
from app.extensions import db

class BorrowRequestRepo:
    @staticmethod
    def get(request_id: int):
        return db.session.get(BorrowRequest, request_id)

    @staticmethod
    def find_pending(user_id: int, book_id: int):
        return BorrowRequest.query.filter_by(user_id=user_id, book_id=book_id, status=PENDING).first()

    @staticmethod
    def list_by_user(user_id: int):
        return BorrowRequest.query.filter_by(user_id=user_id).order_by(BorrowRequest.id.desc()).all()

    @staticmethod
    def list_pending():
        return BorrowRequest.query.filter_by(status=PENDING).order_by(BorrowRequest.requested_at.asc(), BorrowRequest.id.asc()).all()

    @staticmethod
    def add(request: BorrowRequest):
        db.session.add(request)
        db.session.flush()
        return request

    @staticmethod
    def transition_from_pending(request_id: int, values: dict) -> bool:
        """
        Sadece hâlâ pending ise günceller (compare-and-set).
        Yarışı kaybeden çağıran False alır.
        """
        result = db.session.execute(
            update(BorrowRequest)
            .where(BorrowRequest.id == request_id, BorrowRequest.status == PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
