from app.utils.clock import utcnow
from app.extensions import db

class OverdueReport(db.Model):
    """
    Raporlama için denormalize gecikme listesi. Job tarafından yenilenir;
    canlı overdue listesi ve stok kontrolü bu tabloya bakmaz.
    """
    __tablename__ = "overdue_reports"

    id = db.Column(db.Integer, primary_key=True)

    borrowing_id = db.Column(db.Integer, db.ForeignKey("borrowings.id"), unique=True, nullable=False, index=True)

    days_overdue = db.Column(db.Integer, nullable=False, default=0)
    daily_fee = db.Column(db.Numeric(10, 2), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    refreshed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    borrowing = db.relationship("Borrowing", backref=db.backref("overdue_report", uselist=False))
