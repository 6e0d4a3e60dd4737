from __future__ import annotations

from flask import Blueprint, jsonify

from labstock.routes.payload import json_body
from labstock.services import catalog
from labstock.store import get_session

bp = Blueprint("catalog", __name__, url_prefix="/api")


############################
# CATEGORY ROUTES
############################
@bp.get("/categories")
def list_categories():
    categories = catalog.list_categories(get_session())
    return jsonify([category.to_dict() for category in categories])


@bp.post("/categories")
def create_category():
    data = json_body()
    category = catalog.create_category(get_session(), data.get("name"))
    return jsonify(category.to_dict()), 201


@bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    data = json_body()
    category = catalog.update_category(get_session(), category_id, data.get("name"))
    return jsonify(category.to_dict())


@bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    catalog.delete_category(get_session(), category_id)
    return jsonify({"success": True})


############################
# LOCATION ROUTES
############################
@bp.get("/locations")
def list_locations():
    locations = catalog.list_locations(get_session())
    return jsonify([location.to_dict() for location in locations])


@bp.post("/locations")
def create_location():
    data = json_body()
    location = catalog.create_location(get_session(), data.get("name"))
    return jsonify(location.to_dict()), 201


@bp.put("/locations/<int:location_id>")
def update_location(location_id: int):
    data = json_body()
    location = catalog.update_location(get_session(), location_id, data.get("name"))
    return jsonify(location.to_dict())


@bp.delete("/locations/<int:location_id>")
def delete_location(location_id: int):
    catalog.delete_location(get_session(), location_id)
    return jsonify({"success": True})
