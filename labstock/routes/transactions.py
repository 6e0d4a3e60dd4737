from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify, request

from labstock.exceptions import ValidationError
from labstock.routes.payload import int_arg, json_body
from labstock.services import dashboard, ledger
from labstock.store import get_session
from labstock.utils.csv_export import TRANSACTION_COLUMNS, csv_response

bp = Blueprint("transactions", __name__, url_prefix="/api")


def _history_limit() -> int:
    limit = int_arg("limit", current_app.config["TRANSACTION_HISTORY_LIMIT"])
    if limit is None or limit <= 0:
        raise ValidationError("Query parameter 'limit' must be greater than zero.")
    return limit


@bp.get("/transactions")
def list_transactions():
    rows = dashboard.list_transactions(
        get_session(),
        material_id=int_arg("material_id"),
        transaction_type=request.args.get("type"),
        limit=_history_limit(),
    )
    return jsonify(rows)


@bp.post("/transactions")
def create_transaction():
    data = json_body()
    transaction = ledger.record_transaction(
        get_session(),
        data.get("material_id"),
        data.get("type"),
        data.get("quantity"),
        data.get("notes"),
    )
    return jsonify({"success": True, "id": transaction.id}), 201


@bp.get("/transactions/export")
def export_transactions():
    rows = dashboard.list_transactions(
        get_session(),
        material_id=int_arg("material_id"),
        transaction_type=request.args.get("type"),
        limit=None,
    )
    filename = f"transactions-{date.today().isoformat()}.csv"
    return csv_response(rows, TRANSACTION_COLUMNS, filename)


@bp.get("/stats")
def stats():
    return jsonify(
        dashboard.get_stats(
            get_session(),
            recent_limit=current_app.config["RECENT_TRANSACTIONS_LIMIT"],
        )
    )
