from datetime import datetime

from sqlalchemy import extract, func, literal_column, update

from app.models.borrowing import Borrowing
from app.extensions import db

class BorrowingRepo:
    @staticmethod
    def get(borrowing_id: int):
        return db.session.get(Borrowing, borrowing_id)

    @staticmethod
    def add(borrowing: Borrowing):
        db.session.add(borrowing)
        db.session.flush()
        return borrowing

    @staticmethod
    def count_unreturned_for_book(book_id: int) -> int:
        return db.session.scalar(
            db.select(func.count(Borrowing.id)).where(
                Borrowing.book_id == book_id,
                Borrowing.returned_at.is_(None),
            )
        )

    @staticmethod
    def list_unreturned_for_book(book_id: int):
        return Borrowing.query.filter(
            Borrowing.book_id == book_id,
            Borrowing.returned_at.is_(None),
        ).all()

    @staticmethod
    def list_unreturned_by_user(user_id: int):
        return Borrowing.query.filter(
            Borrowing.user_id == user_id,
            Borrowing.returned_at.is_(None),
        ).order_by(Borrowing.due_date.asc()).all()

    @staticmethod
    def list_returned_by_user(user_id: int):
        return Borrowing.query.filter(
            Borrowing.user_id == user_id,
            Borrowing.returned_at.is_not(None),
        ).order_by(Borrowing.returned_at.desc()).all()

    @staticmethod
    def find_unreturned(user_id: int, book_id: int):
        return Borrowing.query.filter(
            Borrowing.user_id == user_id,
            Borrowing.book_id == book_id,
            Borrowing.returned_at.is_(None),
        ).first()

    @staticmethod
    def find_overdue(now: datetime):
        # due_date anında overdue sayılır (now >= due_date)
        return Borrowing.query.filter(
            Borrowing.returned_at.is_(None),
            Borrowing.due_date <= now,
        ).order_by(Borrowing.due_date.asc()).all()

    @staticmethod
    def mark_returned(borrowing_id: int, values: dict) -> bool:
        """returned_at hâlâ NULL ise yazar; ikinci iade False alır."""
        result = db.session.execute(
            update(Borrowing)
            .where(Borrowing.id == borrowing_id, Borrowing.returned_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def stats_for_book(book_id: int, now: datetime) -> dict:
        # iade edilmemişler şu ana kadar sayılır
        days = _days_between(Borrowing.borrowed_at, func.coalesce(Borrowing.returned_at, now))
        total, average = db.session.execute(
            db.select(func.count(Borrowing.id), func.avg(days)).where(Borrowing.book_id == book_id)
        ).one()
        return {
            "total_borrowings": total,
            "average_borrow_days": round(average or 0),
        }


def _days_between(start, end):
    """İki DateTime kolonu arasındaki gün farkı (kesirli), motora göre."""
    dialect = db.session.get_bind().dialect.name
    if dialect == "sqlite":
        return func.julianday(end) - func.julianday(start)
    if dialect == "mssql":
        return func.datediff(literal_column("second"), start, end) / 86400.0
    return extract("epoch", end - start) / 86400.0
