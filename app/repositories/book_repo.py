from sqlalchemy import update

from app.models.book import Book
from app.extensions import db

class BookRepo:
    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def lock_for_borrowing(book_id: int) -> bool:
        """
        Kitap satırını transaction sonuna kadar kilitler: lock_version'ı artıran
        UPDATE her motorda satırın yazma kilidini alır (SQLite'ta tüm DB'nin).
        Aynı kitap için eşzamanlı onaylar burada sıraya girer.
        Kitap yoksa False.
        """
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(lock_version=Book.lock_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
