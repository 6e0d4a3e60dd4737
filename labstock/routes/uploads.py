from __future__ import annotations

from flask import Blueprint, current_app, send_from_directory

bp = Blueprint("uploads", __name__, url_prefix="/uploads")


@bp.get("/<path:filename>")
def serve_upload(filename: str):
    return send_from_directory(current_app.config["IMAGE_UPLOAD_FOLDER"], filename)
