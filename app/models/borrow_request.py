from app.extensions import db
from app.domain.statuses import BorrowRequestStatus

PENDING = BorrowRequestStatus.PENDING.value


class BorrowRequest(db.Model):
    __tablename__ = "borrow_requests"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)  # pending/approved/rejected/cancelled

    requested_at = db.Column(db.DateTime, nullable=False)
    requested_days = db.Column(db.Integer, nullable=False)

    processed_at = db.Column(db.DateTime, nullable=True)
    processed_by = db.Column(db.Integer, nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)

    book = db.relationship("Book", backref="borrow_requests")

    __table_args__ = (
        # (kullanıcı, kitap) başına en fazla bir pending talep
        db.Index(
            "uq_borrow_requests_pending_user_book",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=db.text("status = 'pending'"),
            postgresql_where=db.text("status = 'pending'"),
            mssql_where=db.text("status = 'pending'"),
        ),
    )
