from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from labstock.store import get_session, ping

bp = Blueprint("health", __name__, url_prefix="/health")


@bp.get("/database")
def database_status():
    if not current_app.config.get("DATABASE_AVAILABLE", True):
        return (
            jsonify(
                {
                    "status": "DOWN",
                    "error": current_app.config.get("DATABASE_ERROR"),
                }
            ),
            503,
        )

    try:
        ping(get_session())
    except SQLAlchemyError as exc:
        get_session().rollback()
        current_app.logger.warning("Database ping failed: %s", exc)
        return jsonify({"status": "DOWN", "error": str(exc)}), 503

    return jsonify({"status": "OK"})
