from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from labstock.extensions import db


def get_session() -> Session:
    """Return the session bound to the current application context."""

    return db.session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run the enclosed statements as one unit: commit on success, else roll back."""

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless each connection opts in."""

    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def ping(bind: Session | Connection) -> None:
    """Raise :class:`OperationalError` when the configured database is unreachable."""

    bind.execute(text("SELECT 1"))
