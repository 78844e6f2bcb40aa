from app.extensions import db


class Borrowing(db.Model):
    __tablename__ = "borrowings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    request_id = db.Column(db.Integer, db.ForeignKey("borrow_requests.id"), nullable=True, unique=True)

    borrowed_at = db.Column(db.DateTime, nullable=False)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    returned_at = db.Column(db.DateTime, nullable=True, index=True)

    # status kolonu yok: active/overdue/returned okuma anında türetiliyor
    late_fee_per_day = db.Column(db.Numeric(10, 2), nullable=False)
    days_overdue = db.Column(db.Integer, nullable=False, default=0)
    late_fee_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    borrow_notes = db.Column(db.String(500), nullable=True)
    return_notes = db.Column(db.String(500), nullable=True)

    book = db.relationship("Book", backref="borrowings")
    request = db.relationship("BorrowRequest", backref=db.backref("borrowing", uselist=False))

    __table_args__ = (
        db.Index("ix_borrowings_book_returned", "book_id", "returned_at"),
    )
