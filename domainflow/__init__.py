import os
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from flask import Flask, request, g
from flask_babel import format_datetime, format_date
from sqlalchemy import event
from sqlalchemy.engine import Engine
from .extensions import db, migrate, csrf, babel
from .config import Config
from .services.preferences import PREFERENCES_KEY, PreferenceStore
from .services.progress import progress_color

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.main import main_bp
from .blueprints.admin import admin_bp


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=os.getenv("ENV", "development"),
            release=app.config.get("APP_VERSION"),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "domainflow.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Stream to stdout as well (useful on dev/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    # app.logger is the "domainflow" logger, so service loggers propagate into it.
    # Drop handlers left by an earlier create_app() in the same process.
    for old in list(app.logger.handlers):
        if getattr(old, "_domainflow", False):
            app.logger.removeHandler(old)
            old.close()
    for handler in (file_handler, stream_handler):
        handler._domainflow = True
        app.logger.addHandler(handler)

    app.logger.info("Logging initialized.")

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    if config_object is None:
        app.config.from_object(Config)
    else:
        app.config.from_object(config_object)

    # --- base config defaults ---
    app.config.setdefault("SECRET_KEY", "change-me")
    app.config.setdefault(
        "SQLALCHEMY_DATABASE_URI",
        "sqlite:///" + os.path.join(app.instance_path, "domainflow.db"),
    )
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    app.config.setdefault("BABEL_DEFAULT_LOCALE", "it")
    app.config.setdefault("BABEL_DEFAULT_TIMEZONE", "Europe/Rome")
    app.config.setdefault("PREFERENCES_COOKIE_MAX_AGE", 365 * 24 * 3600)
    app.config.setdefault("CHANGES_POLL_SECONDS", 15)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    if config_object is None:
        app.config.from_pyfile("config.py", silent=True)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    babel.init_app(app)

    @app.template_filter("datetime_it")
    def _datetime_it(value):
        return format_datetime(value, "short") if value else ""

    @app.template_filter("date_it")
    def _date_it(value):
        return format_date(value, "medium") if value else ""

    @app.context_processor
    def inject_helpers():
        return {"now": datetime.utcnow, "progress_color": progress_color}

    # ---- Preferences: one JSON cookie, read per request, written back when changed ----
    @app.before_request
    def _load_preferences():
        raw = request.cookies.get(PREFERENCES_KEY)
        g.preferences = PreferenceStore({PREFERENCES_KEY: raw} if raw else {})

    @app.after_request
    def _store_preferences(response):
        store = getattr(g, "preferences", None)
        if store is not None and store.dirty:
            response.set_cookie(
                PREFERENCES_KEY,
                store.storage[PREFERENCES_KEY],
                max_age=app.config["PREFERENCES_COOKIE_MAX_AGE"],
                secure=bool(app.config.get("SESSION_COOKIE_SECURE", False)),
                httponly=False,  # readable by the page; holds no secrets
                samesite="Lax",
            )
        return response

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.cli.command("init-db")
    def init_db():
        """Create all tables (development shortcut; use `flask db upgrade` in production)."""
        db.create_all()
        app.logger.info("Database tables created.")

    return app
