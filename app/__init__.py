from collections.abc import Mapping

from flask import Flask, jsonify
from app.config import Config
from app.extensions import db, migrate, jwt


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(test_config, Mapping):
        app.config.from_mapping(test_config)
    elif test_config is not None:
        app.config.from_object(test_config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # 1) Önce db init; modeller create_all/migrate görsün diye import ediliyor
    db.init_app(app)
    from app.models import book, borrow_request, borrowing, overdue_report  # noqa: F401

    # 2) Diğer extension'lar
    migrate.init_app(app, db)
    jwt.init_app(app)

    # 3) Ödünç servisi (politika config'ten)
    from app.services.borrowing_service import init_borrowing_service
    init_borrowing_service(app)

    # 4) API blueprint
    from app.controllers.borrowing_controller import borrowing_bp
    app.register_blueprint(borrowing_bp)

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # Scheduler (overdue rapor yenileme)
    from app.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app
