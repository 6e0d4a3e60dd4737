from __future__ import annotations

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from labstock.exceptions import ValidationError
from labstock.models import Category, Material, Transaction, TransactionType


def list_materials(session: Session, search: str | None = None) -> list[dict]:
    """Materials with their category name; missing categories yield ``None``."""

    query = session.query(Material, Category.name).outerjoin(
        Category, Category.id == Material.category_id
    )

    term = (search or "").strip().lower()
    if term:
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            or_(
                func.lower(Material.name).like(pattern, escape="\\"),
                func.lower(Category.name).like(pattern, escape="\\"),
            )
        )

    rows = query.order_by(Material.name, Material.id).all()
    return [material.to_dict(category_name=category_name) for material, category_name in rows]


def list_low_stock(session: Session) -> list[dict]:
    rows = (
        session.query(Material, Category.name)
        .outerjoin(Category, Category.id == Material.category_id)
        .filter(Material.stock <= Material.min_stock)
        .order_by((Material.stock - Material.min_stock).asc(), Material.name)
        .all()
    )
    return [material.to_dict(category_name=category_name) for material, category_name in rows]


def list_transactions(
    session: Session,
    material_id: int | None = None,
    transaction_type: str | None = None,
    limit: int | None = 100,
) -> list[dict]:
    """Transactions joined with their material name, newest first."""

    query = session.query(Transaction, Material.name).join(
        Material, Material.id == Transaction.material_id
    )
    if material_id is not None:
        query = query.filter(Transaction.material_id == material_id)
    if transaction_type:
        transaction_type = transaction_type.strip().upper()
        if transaction_type not in TransactionType.ALL:
            raise ValidationError("Transaction type must be IN or OUT.")
        query = query.filter(Transaction.type == transaction_type)

    query = query.order_by(Transaction.date.desc(), Transaction.id.desc())
    if limit is not None:
        query = query.limit(limit)

    return [
        transaction.to_dict(material_name=material_name)
        for transaction, material_name in query.all()
    ]


def get_stats(session: Session, recent_limit: int = 5) -> dict:
    total_materials = session.query(func.count(Material.id)).scalar() or 0
    low_stock = (
        session.query(func.count(Material.id))
        .filter(Material.stock <= Material.min_stock)
        .scalar()
        or 0
    )
    return {
        "totalMaterials": int(total_materials),
        "lowStock": int(low_stock),
        "recentTransactions": list_transactions(session, limit=recent_limit),
    }


def audit_stock(session: Session) -> list[dict]:
    """Compare each material's cached stock with the sum of its transactions.

    Returns one entry per material whose counter has drifted from its
    ledger. An empty list means every counter matches.
    """

    signed = case(
        (Transaction.type == TransactionType.IN, Transaction.quantity),
        else_=-Transaction.quantity,
    )
    ledger_totals = (
        session.query(
            Transaction.material_id.label("material_id"),
            func.coalesce(func.sum(signed), 0).label("ledger_total"),
        )
        .group_by(Transaction.material_id)
        .subquery()
    )
    rows = (
        session.query(
            Material.id,
            Material.name,
            Material.stock,
            func.coalesce(ledger_totals.c.ledger_total, 0),
        )
        .outerjoin(ledger_totals, ledger_totals.c.material_id == Material.id)
        .order_by(Material.id)
        .all()
    )

    mismatches = []
    for material_id, name, stock, ledger_total in rows:
        ledger_total = int(ledger_total or 0)
        if (stock or 0) != ledger_total:
            mismatches.append(
                {
                    "material_id": material_id,
                    "name": name,
                    "stock": stock,
                    "ledger_total": ledger_total,
                }
            )
    return mismatches
