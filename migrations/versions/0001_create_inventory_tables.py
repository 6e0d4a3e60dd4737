"""create category, location, material and stock_transaction tables

Revision ID: 0001_create_inventory_tables
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa


revision = "0001_create_inventory_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
    )
    op.create_table(
        "location",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
    )
    op.create_table(
        "material",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id"), nullable=True),
        sa.Column("unit", sa.String(length=40), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("location", sa.String(length=120), nullable=True),
        sa.Column("image", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_material_location", "material", ["location"])
    op.create_table(
        "stock_transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("material.id"), nullable=False),
        sa.Column("type", sa.String(length=3), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("type IN ('IN', 'OUT')", name="ck_stock_transaction_type"),
        sa.CheckConstraint("quantity > 0", name="ck_stock_transaction_quantity"),
    )
    op.create_index("ix_stock_transaction_material_id", "stock_transaction", ["material_id"])
    op.create_index("ix_stock_transaction_date", "stock_transaction", ["date"])


def downgrade():
    op.drop_index("ix_stock_transaction_date", table_name="stock_transaction")
    op.drop_index("ix_stock_transaction_material_id", table_name="stock_transaction")
    op.drop_table("stock_transaction")
    op.drop_index("ix_material_location", table_name="material")
    op.drop_table("material")
    op.drop_table("location")
    op.drop_table("category")
