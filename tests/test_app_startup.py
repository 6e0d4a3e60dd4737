from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from sqlalchemy import text, update
from sqlalchemy.exc import OperationalError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import labstock as labstock_module
from labstock import create_app
from labstock.extensions import db
from labstock.models import Material
from labstock.services import catalog, ledger
from labstock.utils.logging import RequestIdFilter, configure_logging


def _make_app(**overrides):
    config = {"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"}
    config.update(overrides)
    return create_app(config)


def test_app_factory_smoke():
    app = _make_app()

    assert app.config["DATABASE_AVAILABLE"] is True
    for name in ["catalog", "materials", "transactions", "uploads", "health", "errors"]:
        assert name in app.blueprints


def test_index_lists_endpoints():
    client = _make_app().test_client()

    body = client.get("/").get_json()

    assert body["database_online"] is True
    assert "/api/stats" in body["endpoints"]


def test_database_health_ok():
    client = _make_app().test_client()

    response = client.get("/health/database")

    assert response.status_code == 200
    assert response.get_json() == {"status": "OK"}


def test_create_app_handles_database_outage(monkeypatch):
    """The service should still start when the database is offline."""

    def fake_ping() -> None:
        raise OperationalError("SELECT 1", {}, Exception("database offline"))

    monkeypatch.setattr(labstock_module, "_ping_database", fake_ping)

    create_all_called = False

    def record_create_all(*args, **kwargs):  # type: ignore[no-untyped-def]
        nonlocal create_all_called
        create_all_called = True

    monkeypatch.setattr(db, "create_all", record_create_all)

    app = _make_app()

    assert app.config["DATABASE_AVAILABLE"] is False
    assert "Unable to connect" in (app.config["DATABASE_ERROR"] or "")
    assert "database offline" in (app.config["DATABASE_ERROR"] or "")
    assert create_all_called is False

    response = app.test_client().get("/health/database")
    assert response.status_code == 503
    assert response.get_json()["status"] == "DOWN"


def test_file_database_directory_is_created(tmp_path):
    db_path = tmp_path / "nested" / "labstock.db"

    app = _make_app(SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}")

    assert app.config["DATABASE_AVAILABLE"] is True
    assert db_path.parent.is_dir()
    with app.app_context():
        db.engine.dispose()


def test_sqlite_foreign_keys_are_enforced():
    app = _make_app()
    with app.app_context():
        db.create_all()
        enabled = db.session.execute(text("PRAGMA foreign_keys")).scalar()
        assert enabled == 1


def test_check_stock_command():
    app = _make_app()
    runner = app.test_cli_runner()
    with app.app_context():
        db.create_all()
        material = catalog.create_material(db.session, {"name": "Resistor", "unit": "Pcs"})
        ledger.record_transaction(db.session, material.id, "IN", 10)
        material_id = material.id

    result = runner.invoke(args=["check-stock"])
    assert result.exit_code == 0
    assert "Stock OK" in result.output

    with app.app_context():
        db.session.execute(update(Material).where(Material.id == material_id).values(stock=3))
        db.session.commit()

    result = runner.invoke(args=["check-stock"])
    assert result.exit_code == 1
    assert "stock=3 ledger=10" in result.output


def test_init_db_command():
    app = _make_app()

    result = app.test_cli_runner().invoke(args=["init-db"])

    assert result.exit_code == 0
    assert "tables are in place" in result.output


@pytest.fixture
def clean_root_logger():
    root_logger = logging.getLogger()
    before = list(root_logger.handlers)
    yield root_logger
    for handler in list(root_logger.handlers):
        if handler not in before:
            root_logger.removeHandler(handler)
            handler.close()


def test_configure_logging_writes_rotating_file(tmp_path, clean_root_logger):
    app = _make_app(LOG_DIR=str(tmp_path / "logs"))

    log_path = configure_logging(app)
    handler_count = len(clean_root_logger.handlers)
    configure_logging(app)

    assert len(clean_root_logger.handlers) == handler_count
    assert any(isinstance(h, logging.StreamHandler) for h in clean_root_logger.handlers)

    assert log_path == tmp_path / "logs" / "labstock.log"
    file_handlers = [
        handler
        for handler in clean_root_logger.handlers
        if isinstance(handler, RotatingFileHandler)
        and handler.baseFilename == str(log_path)
    ]
    assert len(file_handlers) == 1

    logging.getLogger("labstock.tests").info("bench check")
    file_handlers[0].flush()
    assert "[req=-] labstock.tests: bench check" in log_path.read_text()


def test_request_id_filter_outside_request():
    record = logging.LogRecord("labstock", logging.INFO, __file__, 1, "msg", (), None)

    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"
