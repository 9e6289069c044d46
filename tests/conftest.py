# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from domainflow import create_app
from domainflow.config import Config
from domainflow.extensions import db as _db
from domainflow.services import template_store


@pytest.fixture()
def app(tmp_path: Path):
    """
    Application bound to a private in-memory SQLite database.

    CSRF is off so route tests can post plain form data; logs go to tmp_path.
    """

    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test"
        SQLALCHEMY_DATABASE_URI = "sqlite://"
        WTF_CSRF_ENABLED = False
        SESSION_COOKIE_SECURE = False
        LOG_DIR = str(tmp_path / "logs")
        LOG_LEVEL = "WARNING"
        LOG_JSON = False
        SENTRY_DSN = ""
        CHANGES_POLL_SECONDS = 0

    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def make_template(app):
    """Create a template through the store, with sensible defaults."""

    def _make(**fields):
        fields.setdefault("title", "Aggiornare plugin")
        fields.setdefault("category", "Manutenzione")
        fields.setdefault("priority", "medium")
        return template_store.create_template(**fields)

    return _make
