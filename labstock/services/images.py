"""File storage for material photos.

The dashboard posts camera captures as ``data:image/jpeg;base64,...`` URLs.
They are written to ``IMAGE_UPLOAD_FOLDER`` under a name built from the
current time in milliseconds and a random suffix, and the material keeps the
public ``/uploads/<filename>`` path.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import secrets
import time

from flask import current_app
from werkzeug.utils import secure_filename

from labstock.exceptions import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"

_DATA_URL_PATTERN = re.compile(
    r"^data:image/(?P<ext>[a-zA-Z0-9.+-]+);base64,(?P<payload>.+)$", re.DOTALL
)


def _upload_folder() -> str:
    return current_app.config["IMAGE_UPLOAD_FOLDER"]


def _allowed_extension(extension: str) -> bool:
    return extension in current_app.config["IMAGE_ALLOWED_EXTENSIONS"]


def _generate_filename(extension: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.{extension}"


def is_data_url(value: str | None) -> bool:
    return bool(value) and value.startswith("data:")


def store_image(value: str | None) -> str | None:
    """Persist ``value`` when it is a data URL and return the stored path.

    Blank values become ``None``. Anything that is not a data URL (an
    existing ``/uploads/`` path or an external link) is returned unchanged.
    """

    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Image must be a string.")
    value = value.strip()
    if not value:
        return None
    if not is_data_url(value):
        return value

    match = _DATA_URL_PATTERN.match(value)
    if match is None:
        raise ValidationError("Image must be a base64 encoded data URL.")

    extension = match.group("ext").lower()
    if extension == "jpeg":
        extension = "jpg"
    if not _allowed_extension(extension):
        raise ValidationError(f"Image type '{extension}' is not allowed.")

    try:
        content = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data could not be decoded.") from None
    if not content:
        raise ValidationError("Image data is empty.")

    upload_folder = _upload_folder()
    os.makedirs(upload_folder, exist_ok=True)
    filename = _generate_filename(extension)
    with open(os.path.join(upload_folder, filename), "wb") as handle:
        handle.write(content)

    logger.info("Stored material image %s (%d bytes)", filename, len(content))
    return f"{UPLOAD_URL_PREFIX}{filename}"


def stored_filename(path: str | None) -> str | None:
    """Return the file name behind an ``/uploads/`` path, or ``None``."""

    if not path or not path.startswith(UPLOAD_URL_PREFIX):
        return None
    filename = secure_filename(path[len(UPLOAD_URL_PREFIX):])
    return filename or None


def remove_image(path: str | None) -> bool:
    filename = stored_filename(path)
    if filename is None:
        return False

    file_path = os.path.join(_upload_folder(), filename)
    if not os.path.exists(file_path):
        return False
    try:
        os.remove(file_path)
    except OSError:
        logger.exception("Failed to remove material image %s", file_path)
        return False
    return True
