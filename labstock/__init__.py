import os

from flask import Flask, current_app, jsonify
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from config import Config
from . import models  # ensure models are registered with SQLAlchemy
from .cli import register_cli
from .extensions import db
from .routes import catalog, errors, health, materials, transactions, uploads
from .store import enable_sqlite_foreign_keys, ping
from .utils.logging import configure_logging, install_request_ids


def _ensure_sqlite_directory(database_uri: str) -> None:
    """Create the parent folder of a file-backed SQLite database."""

    prefix = "sqlite:///"
    if not database_uri.startswith(prefix) or database_uri.startswith("sqlite:///:memory:"):
        return
    directory = os.path.dirname(database_uri[len(prefix):])
    if directory:
        os.makedirs(directory, exist_ok=True)


def _ping_database() -> None:
    """Raise :class:`OperationalError` when the configured database is unreachable."""

    with db.engine.connect() as connection:
        ping(connection)


def create_app(config_override=None):
    app = Flask(__name__)

    app.config.from_object(Config)
    if config_override:
        app.config.update(config_override)

    app.config.setdefault("DATABASE_AVAILABLE", True)
    app.config.setdefault("DATABASE_ERROR", None)

    if not app.config.get("TESTING"):
        configure_logging(app)
    install_request_ids(app)

    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if database_uri.startswith("sqlite:///:memory:"):
        engine_options = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        connect_args = engine_options.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine_options.setdefault("poolclass", StaticPool)
    else:
        _ensure_sqlite_directory(database_uri)

    db.init_app(app)

    database_available = True
    database_error_message: str | None = None

    with app.app_context():
        enable_sqlite_foreign_keys(db.engine)
        try:
            _ping_database()
        except OperationalError as exc:
            database_available = False
            details = str(getattr(exc, "orig", exc)).strip()
            database_error_message = (
                "Unable to connect to the configured database. Start the "
                "database service or update the DB_URL setting, then restart "
                "the service."
            )
            if details:
                database_error_message += f" (Error: {details})"
            current_app.logger.error(
                "Database connection unavailable during startup%s",
                f": {details}" if details else "",
            )
            db.session.remove()
            db.engine.dispose()
        else:
            try:
                db.create_all()
            except SQLAlchemyError:
                database_available = False
                database_error_message = (
                    "The database schema could not be initialized. Review the logs "
                    "for details and restart once resolved."
                )
                current_app.logger.exception("Database initialization error")
                db.session.remove()

    app.config["DATABASE_AVAILABLE"] = database_available
    app.config["DATABASE_ERROR"] = database_error_message

    app.register_blueprint(errors.bp)
    app.register_blueprint(catalog.bp)
    app.register_blueprint(materials.bp)
    app.register_blueprint(transactions.bp)
    app.register_blueprint(uploads.bp)
    app.register_blueprint(health.bp)

    register_cli(app)

    @app.route("/")
    def index():
        return jsonify(
            {
                "name": "labstock",
                "database_online": current_app.config.get("DATABASE_AVAILABLE", True),
                "endpoints": sorted(
                    str(rule) for rule in current_app.url_map.iter_rules()
                    if rule.endpoint != "static"
                ),
            }
        )

    return app
