# app/tasks/scheduler.py
import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.tasks.overdue_refresh import run_overdue_refresh_job


def start_scheduler(app):
    """
    Overdue rapor job'unu arka planda çalıştırır.
    - SCHEDULER_ENABLED kapalıysa hiç başlamaz (testler).
    - Debug reloader'da çift çalışmayı engeller.
    - Process kapanırken scheduler'ı kapatır.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] Disabled by config.")
        return None

    # Werkzeug reloader varsa WERKZEUG_RUN_MAIN=true olan process gerçek process'tir.
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    minutes = int(app.config.get("OVERDUE_REFRESH_MINUTES", 10))
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=run_overdue_refresh_job,
        args=[app],
        trigger=IntervalTrigger(minutes=minutes),
        id="overdue_refresh_job",
        replace_existing=True,
        max_instances=1,        # aynı job üst üste binmesin
        coalesce=True,          # kaçırılanları tek seferde toparla
        misfire_grace_time=120
    )
    scheduler.start()
    app.logger.info(f"[scheduler] Overdue refresh job started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown)
    return scheduler
