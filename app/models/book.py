from app.utils.clock import utcnow
from app.extensions import db

class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)

    # onay akışı bu satırı UPDATE ederek kilitler (aynı kitap için onaylar sıraya girer)
    lock_version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.CheckConstraint("total_copies >= 1", name="ck_books_total_copies_positive"),
    )
