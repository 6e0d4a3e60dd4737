from __future__ import annotations

from flask import request

from labstock.exceptions import ValidationError


def json_body() -> dict:
    """Return the request's JSON object, treating an empty body as ``{}``."""

    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError("Request body must be valid JSON.")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def int_arg(name: str, default: int | None = None) -> int | None:
    raw_value = (request.args.get(name) or "").strip()
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be a number.") from None
