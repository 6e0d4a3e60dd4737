from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from labstock.exceptions import InventoryError
from labstock.extensions import db

bp = Blueprint("errors", __name__)


@bp.app_errorhandler(InventoryError)
def handle_inventory_error(error: InventoryError):
    current_app.logger.info(
        "%s %s rejected (%s): %s",
        request.method,
        request.path,
        error.status_code,
        error.message,
    )
    return jsonify(error.to_dict()), error.status_code


@bp.app_errorhandler(HTTPException)
def handle_http_error(error: HTTPException):
    payload = {"error": error.name}
    if error.description:
        payload["details"] = error.description
    return jsonify(payload), error.code or 500


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    # Leave the session usable for the next request on this worker.
    db.session.rollback()
    current_app.logger.exception("Unhandled exception", exc_info=error)
    return jsonify({"error": "Internal Server Error"}), 500
