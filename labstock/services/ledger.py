from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from labstock.exceptions import NotFoundError, ValidationError
from labstock.models import Material, Transaction, TransactionType
from labstock.store import atomic

logger = logging.getLogger(__name__)

# material.stock is a 32-bit INTEGER column on PostgreSQL
MAX_QUANTITY = 2**31 - 1
MAX_STOCK = 2**31 - 1


def parse_material_id(raw_id) -> int:
    if raw_id is None or isinstance(raw_id, bool):
        raise ValidationError("Material is required.")
    try:
        return int(str(raw_id).strip())
    except (TypeError, ValueError):
        raise ValidationError("Material id must be a number.") from None


def normalize_type(raw_type) -> str:
    transaction_type = str(raw_type or "").strip().upper()
    if transaction_type not in TransactionType.ALL:
        raise ValidationError("Transaction type must be IN or OUT.")
    return transaction_type


def parse_quantity(raw_quantity) -> int:
    if isinstance(raw_quantity, bool):
        raise ValidationError("Quantity must be a whole number.")
    if isinstance(raw_quantity, float):
        if not raw_quantity.is_integer():
            raise ValidationError("Quantity must be a whole number.")
        raw_quantity = int(raw_quantity)
    try:
        quantity = int(str(raw_quantity).strip())
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number.") from None
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"Quantity must not exceed {MAX_QUANTITY}.")
    return quantity


def parse_notes(raw_notes) -> str | None:
    if raw_notes is None:
        return None
    if not isinstance(raw_notes, str):
        raise ValidationError("Notes must be text.")
    return raw_notes.strip() or None


def record_transaction(
    session: Session,
    material_id: int,
    transaction_type,
    quantity,
    notes: str | None = None,
) -> Transaction:
    """Append a stock transaction and apply it to the material's stock.

    The insert and the stock update commit together. Stock is adjusted with a
    single ``UPDATE ... SET stock = stock + :delta`` so concurrent requests
    against the same material serialize in the database. OUT transactions
    are not floored at zero.
    """

    material_id = parse_material_id(material_id)
    transaction_type = normalize_type(transaction_type)
    quantity = parse_quantity(quantity)
    notes_value = parse_notes(notes)
    adjustment = TransactionType.sign(transaction_type) * quantity

    with atomic(session):
        current_stock = session.execute(
            select(Material.stock).where(Material.id == material_id)
        ).scalar_one_or_none()
        if current_stock is None:
            raise NotFoundError("Material not found.")
        if abs(current_stock + adjustment) > MAX_STOCK:
            raise ValidationError(
                "Transaction would push stock outside the supported range.",
                details=f"Current stock is {current_stock}; limit is {MAX_STOCK}.",
            )

        transaction = Transaction(
            material_id=material_id,
            type=transaction_type,
            quantity=quantity,
            notes=notes_value,
        )
        session.add(transaction)
        session.flush()

        result = session.execute(
            update(Material)
            .where(Material.id == material_id)
            .values(stock=Material.stock + adjustment)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Material not found.")

    material = session.get(Material, material_id)
    if material is not None:
        session.refresh(material)
        if material.stock < 0:
            logger.warning(
                "Material %s (%s) stock is negative after %s %s: %s",
                material.id,
                material.name,
                transaction_type,
                quantity,
                material.stock,
            )

    logger.info(
        "Recorded %s of %s for material %s (transaction %s)",
        transaction_type,
        quantity,
        material_id,
        transaction.id,
    )
    return transaction
