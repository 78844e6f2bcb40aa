from sqlalchemy import delete

from app.models.overdue_report import OverdueReport
from app.extensions import db

class OverdueReportRepo:
    @staticmethod
    def list_all():
        return OverdueReport.query.order_by(OverdueReport.days_overdue.desc(), OverdueReport.id.asc()).all()

    @staticmethod
    def by_borrowing_ids():
        return {r.borrowing_id: r for r in OverdueReport.query.all()}

    @staticmethod
    def add(row: OverdueReport):
        db.session.add(row)
        return row

    @staticmethod
    def delete_for_borrowings(borrowing_ids) -> int:
        ids = list(borrowing_ids)
        if not ids:
            return 0
        result = db.session.execute(
            delete(OverdueReport)
            .where(OverdueReport.borrowing_id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
