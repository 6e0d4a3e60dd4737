from datetime import datetime

from labstock.extensions import db


class TransactionType:
    IN = "IN"
    OUT = "OUT"

    ALL = (IN, OUT)

    @classmethod
    def sign(cls, transaction_type: str) -> int:
        return 1 if transaction_type == cls.IN else -1


class Category(db.Model):
    __tablename__ = "category"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Location(db.Model):
    __tablename__ = "location"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Material(db.Model):
    __tablename__ = "material"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("category.id"), nullable=True)
    unit = db.Column(db.String(40), nullable=False)
    # Cached running total; only the ledger service writes it.
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=5)
    # Stored by name, not by id: renaming a location leaves this untouched.
    location = db.Column(db.String(120), nullable=True, index=True)
    image = db.Column(db.String(255), nullable=True)

    category = db.relationship("Category")

    @property
    def is_low_stock(self) -> bool:
        return (self.stock or 0) <= (self.min_stock or 0)

    def to_dict(self, category_name: str | None = None) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "category_name": category_name,
            "unit": self.unit,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "location": self.location,
            "image": self.image,
        }


class Transaction(db.Model):
    __tablename__ = "stock_transaction"
    __table_args__ = (
        db.CheckConstraint("type IN ('IN', 'OUT')", name="ck_stock_transaction_type"),
        db.CheckConstraint("quantity > 0", name="ck_stock_transaction_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    material_id = db.Column(
        db.Integer, db.ForeignKey("material.id"), nullable=False, index=True
    )
    type = db.Column(db.String(3), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    notes = db.Column(db.Text, nullable=True)

    material = db.relationship("Material")

    @property
    def signed_quantity(self) -> int:
        return TransactionType.sign(self.type) * self.quantity

    def to_dict(self, material_name: str | None = None) -> dict:
        return {
            "id": self.id,
            "material_id": self.material_id,
            "material_name": material_name,
            "type": self.type,
            "quantity": self.quantity,
            "date": self.date.isoformat() if self.date else None,
            "notes": self.notes,
        }
