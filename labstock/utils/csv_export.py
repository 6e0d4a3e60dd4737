"""Streamed CSV downloads for material and transaction listings."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Iterable, Mapping

from flask import Response, stream_with_context

MATERIAL_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("name", "name"),
    ("category_name", "category"),
    ("unit", "unit"),
    ("stock", "stock"),
    ("min_stock", "min_stock"),
    ("location", "location"),
)

TRANSACTION_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("date", "date"),
    ("material_id", "material_id"),
    ("material_name", "material"),
    ("type", "type"),
    ("quantity", "quantity"),
    ("notes", "notes"),
)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def csv_response(
    rows: Iterable[Mapping[str, object]],
    columns: Iterable[tuple[str, str]],
    filename: str,
) -> Response:
    columns = tuple(columns)

    def generate():
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([header for _, header in columns])
        for row in rows:
            writer.writerow([_cell(row.get(field)) for field, _ in columns])
            yield buffer.getvalue()
            buffer.seek(0)
            buffer.truncate(0)
        # header-only exports still need a body
        if buffer.getvalue():
            yield buffer.getvalue()

    response = Response(stream_with_context(generate()), mimetype="text/csv")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response
