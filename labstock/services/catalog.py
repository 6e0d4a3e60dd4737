from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from labstock.exceptions import ConflictError, NotFoundError, ValidationError
from labstock.models import Category, Location, Material, Transaction
from labstock.store import atomic

logger = logging.getLogger(__name__)

DEFAULT_MIN_STOCK = 5


def _clean_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_name(value, label: str) -> str:
    name = _clean_text(value)
    if not name:
        raise ValidationError(f"{label} name is required.")
    return name


def _parse_non_negative_int(value, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number.") from None
    if number < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return number


def _get_or_404(session: Session, model, record_id, label: str):
    record = session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{label} not found.")
    return record


def _save_unique(session: Session, record, label: str, name: str) -> None:
    """Commit ``record``, reporting a unique-name race as a conflict."""

    try:
        with atomic(session):
            session.add(record)
    except IntegrityError:
        raise ConflictError(f"{label} '{name}' already exists.") from None


############################
# CATEGORIES
############################
def list_categories(session: Session) -> list[Category]:
    return session.query(Category).order_by(Category.name).all()


def _ensure_category_name_free(session: Session, name: str, exclude_id: int | None = None):
    query = session.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Category '{name}' already exists.")


def create_category(session: Session, name) -> Category:
    name = _require_name(name, "Category")
    _ensure_category_name_free(session, name)

    category = Category(name=name)
    _save_unique(session, category, "Category", name)
    logger.info("Created category %s (%s)", category.id, name)
    return category


def update_category(session: Session, category_id: int, name) -> Category:
    category = _get_or_404(session, Category, category_id, "Category")
    name = _require_name(name, "Category")
    _ensure_category_name_free(session, name, exclude_id=category.id)

    category.name = name
    _save_unique(session, category, "Category", name)
    return category


def delete_category(session: Session, category_id: int) -> None:
    category = _get_or_404(session, Category, category_id, "Category")
    in_use = (
        session.query(func.count(Material.id))
        .filter(Material.category_id == category.id)
        .scalar()
    )
    if in_use:
        logger.warning(
            "Refused to delete category %s (%s): %s material(s) still use it",
            category.id,
            category.name,
            in_use,
        )
        raise ConflictError(
            "Category is still in use.",
            details=f"{in_use} material(s) still reference category '{category.name}'.",
        )

    with atomic(session):
        session.delete(category)
    logger.info("Deleted category %s", category_id)


############################
# LOCATIONS
############################
def list_locations(session: Session) -> list[Location]:
    return session.query(Location).order_by(Location.name).all()


def _ensure_location_name_free(session: Session, name: str, exclude_id: int | None = None):
    query = session.query(Location).filter(Location.name == name)
    if exclude_id is not None:
        query = query.filter(Location.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Location '{name}' already exists.")


def create_location(session: Session, name) -> Location:
    name = _require_name(name, "Location")
    _ensure_location_name_free(session, name)

    location = Location(name=name)
    _save_unique(session, location, "Location", name)
    logger.info("Created location %s (%s)", location.id, name)
    return location


def update_location(session: Session, location_id: int, name) -> Location:
    """Rename a location.

    Materials keep the old name in ``Material.location``; they are not
    rewritten.
    """

    location = _get_or_404(session, Location, location_id, "Location")
    name = _require_name(name, "Location")
    _ensure_location_name_free(session, name, exclude_id=location.id)

    old_name = location.name
    location.name = name
    _save_unique(session, location, "Location", name)
    if old_name != name:
        orphaned = (
            session.query(func.count(Material.id))
            .filter(Material.location == old_name)
            .scalar()
        )
        if orphaned:
            logger.warning(
                "Renamed location %s from %r to %r; %s material(s) still reference the old name",
                location.id,
                old_name,
                name,
                orphaned,
            )
    return location


def delete_location(session: Session, location_id: int) -> None:
    location = _get_or_404(session, Location, location_id, "Location")
    in_use = (
        session.query(func.count(Material.id))
        .filter(Material.location == location.name)
        .scalar()
    )
    if in_use:
        logger.warning(
            "Refused to delete location %s (%s): %s material(s) stored there",
            location.id,
            location.name,
            in_use,
        )
        raise ConflictError(
            "Location is still in use.",
            details=f"{in_use} material(s) are stored at '{location.name}'.",
        )

    with atomic(session):
        session.delete(location)
    logger.info("Deleted location %s", location_id)


############################
# MATERIALS
############################
def get_material(session: Session, material_id: int) -> Material:
    return _get_or_404(session, Material, material_id, "Material")


def _resolve_category_id(session: Session, raw_value) -> int | None:
    if raw_value is None or _clean_text(raw_value) == "":
        return None
    if isinstance(raw_value, bool):
        raise ValidationError("Category id must be a number.")
    try:
        category_id = int(str(raw_value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Category id must be a number.") from None
    if session.get(Category, category_id) is None:
        raise ValidationError("Selected category does not exist.")
    return category_id


def _apply_material_fields(
    session: Session,
    material: Material,
    payload: Mapping[str, Any],
    *,
    partial: bool,
    default_min_stock: int,
) -> None:
    material.name = _require_name(payload.get("name"), "Material")

    unit = _clean_text(payload.get("unit"))
    if not unit:
        raise ValidationError("Unit is required.")
    material.unit = unit

    if not partial or "category_id" in payload:
        material.category_id = _resolve_category_id(session, payload.get("category_id"))

    if "min_stock" in payload and _clean_text(payload.get("min_stock")) != "":
        material.min_stock = _parse_non_negative_int(payload["min_stock"], "Minimum stock")
    elif not partial:
        material.min_stock = default_min_stock

    if not partial or "location" in payload:
        material.location = _clean_text(payload.get("location")) or None

    if not partial or "image" in payload:
        material.image = _clean_text(payload.get("image")) or None


def create_material(
    session: Session,
    payload: Mapping[str, Any],
    *,
    default_min_stock: int = DEFAULT_MIN_STOCK,
) -> Material:
    """Create a material with zero stock.

    Any ``stock`` key in the payload is ignored; stock only moves through
    recorded transactions.
    """

    material = Material(stock=0)
    _apply_material_fields(
        session, material, payload, partial=False, default_min_stock=default_min_stock
    )
    with atomic(session):
        session.add(material)
    logger.info("Created material %s (%s)", material.id, material.name)
    return material


def update_material(
    session: Session,
    material_id: int,
    payload: Mapping[str, Any],
    *,
    default_min_stock: int = DEFAULT_MIN_STOCK,
) -> Material:
    material = _get_or_404(session, Material, material_id, "Material")
    try:
        _apply_material_fields(
            session, material, payload, partial=True, default_min_stock=default_min_stock
        )
    except ValidationError:
        session.rollback()
        raise
    with atomic(session):
        session.add(material)
    return material


def delete_material(session: Session, material_id: int) -> dict:
    """Delete a material together with its transaction history.

    Returns the material as it was before deletion so callers can clean up
    its image file.
    """

    material = _get_or_404(session, Material, material_id, "Material")
    snapshot = material.to_dict()
    with atomic(session):
        removed = session.execute(
            delete(Transaction)
            .where(Transaction.material_id == material.id)
            .execution_options(synchronize_session=False)
        ).rowcount
        session.delete(material)
    logger.info(
        "Deleted material %s (%s) and %s transaction(s)",
        material_id,
        snapshot["name"],
        removed,
    )
    return snapshot


def image_in_use(session: Session, image: str | None) -> bool:
    """True while any material still points at ``image``."""

    if not image:
        return False
    count = session.query(func.count(Material.id)).filter(Material.image == image).scalar()
    return bool(count)
