# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from app.domain.actor import Actor
from app.extensions import db
from app.models.book import Book
from app.services.borrowing_service import init_borrowing_service

START = datetime(2025, 3, 1, 9, 0, 0)


class FrozenClock:
    """Servise verilen saat; testler zamanı elle ilerletir."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


TEST_SETTINGS = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": {},
    "JWT_SECRET_KEY": "test-jwt-secret-key-with-enough-length",
    "SCHEDULER_ENABLED": False,
    "LATE_FEE_CAP": None,
}


def build_settings(**overrides) -> dict:
    return {**TEST_SETTINGS, **overrides}


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def app(tmp_path, clock):
    # dosya tabanlı SQLite: thread testlerinde her thread kendi bağlantısını alır
    app = create_app(build_settings(
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'library.db'}",
        SQLALCHEMY_ENGINE_OPTIONS={"connect_args": {"timeout": 30}},
    ))
    with app.app_context():
        db.create_all()
        init_borrowing_service(app, clock=clock)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def service(app):
    return app.extensions["borrowing_service"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_book(app):
    counter = {"n": 0}

    def _make(total_copies: int = 1, title: str | None = None) -> Book:
        counter["n"] += 1
        book = Book(
            title=title or f"Book {counter['n']}",
            author="Test Author",
            isbn=f"978-0-{counter['n']:06d}",
            total_copies=total_copies,
        )
        db.session.add(book)
        db.session.commit()
        return book

    return _make


@pytest.fixture
def alice() -> Actor:
    return Actor(user_id=1)


@pytest.fixture
def bob() -> Actor:
    return Actor(user_id=2)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=100, role="admin")


@pytest.fixture
def auth_headers(app):
    def _headers(actor: Actor) -> dict:
        token = create_access_token(identity=str(actor.user_id), additional_claims={"role": actor.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
