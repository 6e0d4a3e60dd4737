import os
import random
import sys

import pytest
from sqlalchemy import func

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from labstock import create_app
from labstock.exceptions import NotFoundError, ValidationError
from labstock.extensions import db
from labstock.models import Material, Transaction
from labstock.services import catalog, dashboard, ledger


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "IMAGE_UPLOAD_FOLDER": str(tmp_path / "uploads"),
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def material(app):
    return catalog.create_material(
        db.session, {"name": "Resistor 220 Ohm", "unit": "Pcs", "min_stock": 5}
    )


def _stock(material_id):
    return db.session.get(Material, material_id).stock


def _transaction_count(material_id=None):
    query = db.session.query(func.count(Transaction.id))
    if material_id is not None:
        query = query.filter(Transaction.material_id == material_id)
    return query.scalar()


def test_in_transaction_adds_stock(material):
    transaction = ledger.record_transaction(db.session, material.id, "IN", 10, "delivery")

    assert _stock(material.id) == 10
    stored = db.session.get(Transaction, transaction.id)
    assert stored.type == "IN"
    assert stored.quantity == 10
    assert stored.notes == "delivery"
    assert stored.date is not None


def test_out_transaction_subtracts_stock(material):
    ledger.record_transaction(db.session, material.id, "IN", 10)
    ledger.record_transaction(db.session, material.id, "OUT", 3, "issued")

    assert _stock(material.id) == 7
    assert _transaction_count(material.id) == 2


def test_out_transaction_can_drive_stock_negative(material):
    ledger.record_transaction(db.session, material.id, "OUT", 4)

    assert _stock(material.id) == -4


def test_type_is_case_insensitive(material):
    transaction = ledger.record_transaction(db.session, material.id, " in ", "2")

    assert transaction.type == "IN"
    assert _stock(material.id) == 2


def test_blank_notes_are_stored_as_null(material):
    transaction = ledger.record_transaction(db.session, material.id, "IN", 1, "   ")

    assert db.session.get(Transaction, transaction.id).notes is None


def test_missing_material_is_rejected_without_writing(app):
    with pytest.raises(NotFoundError):
        ledger.record_transaction(db.session, 999, "IN", 5)

    assert _transaction_count() == 0


@pytest.mark.parametrize(
    "quantity", [0, -1, "abc", "", None, True, 1.5, "2.5", ledger.MAX_QUANTITY + 1, 10**20, 1e20]
)
def test_invalid_quantity_is_rejected(material, quantity):
    with pytest.raises(ValidationError):
        ledger.record_transaction(db.session, material.id, "IN", quantity)

    assert _stock(material.id) == 0
    assert _transaction_count(material.id) == 0


@pytest.mark.parametrize("notes", [5, ["a"], {"x": 1}])
def test_non_text_notes_are_rejected(material, notes):
    with pytest.raises(ValidationError):
        ledger.record_transaction(db.session, material.id, "IN", 1, notes)

    assert _transaction_count(material.id) == 0


def test_largest_quantity_is_accepted(material):
    ledger.record_transaction(db.session, material.id, "IN", ledger.MAX_QUANTITY)

    assert _stock(material.id) == ledger.MAX_QUANTITY


def test_stock_cannot_leave_integer_range(material):
    ledger.record_transaction(db.session, material.id, "IN", ledger.MAX_QUANTITY)

    with pytest.raises(ValidationError):
        ledger.record_transaction(db.session, material.id, "IN", ledger.MAX_QUANTITY)

    stock = _stock(material.id)
    assert isinstance(stock, int)
    assert stock == ledger.MAX_QUANTITY
    assert _transaction_count(material.id) == 1
    assert dashboard.audit_stock(db.session) == []


@pytest.mark.parametrize("transaction_type", ["", None, "ADJUST", "in-out"])
def test_invalid_type_is_rejected(material, transaction_type):
    with pytest.raises(ValidationError):
        ledger.record_transaction(db.session, material.id, transaction_type, 1)

    assert _transaction_count(material.id) == 0


@pytest.mark.parametrize("material_id", [None, "abc", True])
def test_invalid_material_id_is_rejected(app, material_id):
    with pytest.raises(ValidationError):
        ledger.record_transaction(db.session, material_id, "IN", 1)


def test_stock_matches_signed_sum_after_every_transaction(material):
    rng = random.Random(20240601)
    expected = 0
    for _ in range(40):
        transaction_type = rng.choice(["IN", "OUT"])
        quantity = rng.randint(1, 25)
        ledger.record_transaction(db.session, material.id, transaction_type, quantity)
        expected += quantity if transaction_type == "IN" else -quantity

        assert _stock(material.id) == expected

    assert dashboard.audit_stock(db.session) == []


def test_transactions_for_one_material_leave_others_untouched(material):
    other = catalog.create_material(db.session, {"name": "Arduino Uno R3", "unit": "Unit"})

    ledger.record_transaction(db.session, material.id, "IN", 8)

    assert _stock(other.id) == 0
    assert _transaction_count(other.id) == 0


def test_material_payload_cannot_set_stock(app):
    material = catalog.create_material(
        db.session, {"name": "Solder 40W", "unit": "Unit", "stock": 50}
    )
    assert _stock(material.id) == 0

    catalog.update_material(
        db.session, material.id, {"name": "Solder 40W", "unit": "Unit", "stock": 99}
    )
    assert _stock(material.id) == 0


def test_audit_reports_drifted_counter(material):
    ledger.record_transaction(db.session, material.id, "IN", 5)
    db.session.get(Material, material.id).stock = 42
    db.session.commit()

    mismatches = dashboard.audit_stock(db.session)

    assert mismatches == [
        {
            "material_id": material.id,
            "name": "Resistor 220 Ohm",
            "stock": 42,
            "ledger_total": 5,
        }
    ]
