# app/tasks/overdue_refresh.py
from app.services.borrowing_service import get_borrowing_service


def run_overdue_refresh_job(app):
    """
    Gecikmiş ödünçlerin rapor tablosunu yeniler.
    Canlı overdue listesi bu job'a bağlı değil; bu sadece raporlama için.
    """
    with app.app_context():
        try:
            return get_borrowing_service().refresh_overdue_reports()
        except Exception as e:
            app.logger.exception(f"[overdue_refresh] Hata: {e}")
            return None
