from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify, request

from labstock.exceptions import InventoryError
from labstock.routes.payload import json_body
from labstock.services import catalog, dashboard, images
from labstock.store import get_session
from labstock.utils.csv_export import MATERIAL_COLUMNS, csv_response

bp = Blueprint("materials", __name__, url_prefix="/api/materials")


def _material_payload(material) -> dict:
    category_name = material.category.name if material.category is not None else None
    return material.to_dict(category_name=category_name)


def _with_stored_image(data: dict) -> tuple[dict, str | None]:
    """Store an inline image and return the payload plus the new file path, if any."""

    if "image" not in data:
        return data, None
    raw_image = data.get("image")
    fresh = isinstance(raw_image, str) and images.is_data_url(raw_image.strip())
    data = dict(data)
    data["image"] = images.store_image(raw_image)
    return data, (data["image"] if fresh else None)


def _release_image(session, image: str | None) -> None:
    if image and not catalog.image_in_use(session, image):
        images.remove_image(image)


@bp.get("")
def list_materials():
    search = request.args.get("q")
    return jsonify(dashboard.list_materials(get_session(), search=search))


@bp.get("/low-stock")
def list_low_stock():
    return jsonify(dashboard.list_low_stock(get_session()))


@bp.get("/export")
def export_materials():
    rows = dashboard.list_materials(get_session(), search=request.args.get("q"))
    filename = f"materials-{date.today().isoformat()}.csv"
    return csv_response(rows, MATERIAL_COLUMNS, filename)


@bp.get("/<int:material_id>")
def get_material(material_id: int):
    material = catalog.get_material(get_session(), material_id)
    return jsonify(_material_payload(material))


@bp.post("")
def create_material():
    session = get_session()
    data, stored_image = _with_stored_image(json_body())
    try:
        material = catalog.create_material(
            session,
            data,
            default_min_stock=current_app.config["DEFAULT_MIN_STOCK"],
        )
    except InventoryError:
        images.remove_image(stored_image)
        raise
    return jsonify({"id": material.id, "material": _material_payload(material)}), 201


@bp.put("/<int:material_id>")
def update_material(material_id: int):
    session = get_session()
    previous_image = catalog.get_material(session, material_id).image

    data, stored_image = _with_stored_image(json_body())
    try:
        material = catalog.update_material(
            session,
            material_id,
            data,
            default_min_stock=current_app.config["DEFAULT_MIN_STOCK"],
        )
    except InventoryError:
        images.remove_image(stored_image)
        raise

    if previous_image != material.image:
        _release_image(session, previous_image)
    return jsonify(_material_payload(material))


@bp.delete("/<int:material_id>")
def delete_material(material_id: int):
    session = get_session()
    deleted = catalog.delete_material(session, material_id)
    _release_image(session, deleted.get("image"))
    return jsonify({"success": True})
