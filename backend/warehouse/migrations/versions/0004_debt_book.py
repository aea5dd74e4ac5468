"""Debt book: debt customers, debts, payments; sales move to cash/debt

Revision ID: 0004_debt_book
Revises: 0003_wholesale_pricing
Create Date: 2025-09-10 11:20:00.000000

Card and transfer sales are folded into cash, then the sales table is
rebuilt without customer_phone, with debt_customer_id / debt_id and with a
payment_method CHECK of (cash, debt). The rebuild is skipped when sales
already has that shape.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0004_debt_book"
down_revision = "0003_wholesale_pricing"
branch_labels = None
depends_on = None


NOW = sa.text("(CURRENT_TIMESTAMP)")


def _sales_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("sale_type", sa.String(length=16), nullable=False, server_default="retail"),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("weight_unit", sa.String(length=4), nullable=True),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("discount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("final_price", sa.Float(), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("payment_method", sa.String(length=16), nullable=False, server_default="cash"),
        sa.Column("debt_customer_id", sa.Integer(), nullable=True),
        sa.Column("debt_id", sa.Integer(), nullable=True),
        sa.Column("sale_date", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.CheckConstraint("sale_type IN ('retail', 'wholesale')", name=op.f("ck_sales_sale_type")),
        sa.CheckConstraint("payment_method IN ('cash', 'debt')", name=op.f("ck_sales_payment_method")),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], name=op.f("fk_sales_product_id_products")),
        sa.ForeignKeyConstraint(
            ["debt_customer_id"], ["debt_customers.id"],
            name=op.f("fk_sales_debt_customer_id_debt_customers"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_sales")),
    ]


def _sales_needs_rebuild(inspector) -> bool:
    columns = {c["name"] for c in inspector.get_columns("sales")}
    check_sql = " ".join(ck.get("sqltext") or "" for ck in inspector.get_check_constraints("sales"))
    return (
        "customer_phone" in columns
        or "debt_id" not in columns
        or "debt_customer_id" not in columns
        or "'debt'" not in check_sql
    )


def _rebuild_sales(inspector):
    old_columns = {c["name"] for c in inspector.get_columns("sales")}
    columns = _sales_columns()
    shared = ", ".join(c.name for c in columns if isinstance(c, sa.Column) and c.name in old_columns)

    op.create_table("_sales_rebuild", *columns, sqlite_autoincrement=True)
    op.execute(f"INSERT INTO _sales_rebuild ({shared}) SELECT {shared} FROM sales")
    op.drop_table("sales")
    op.rename_table("_sales_rebuild", "sales")

    op.create_index("ix_sales_product_id", "sales", ["product_id"])
    op.create_index("ix_sales_sale_date", "sales", ["sale_date"])
    op.create_index("ix_sales_debt_customer_id", "sales", ["debt_customer_id"])
    op.create_index("ix_sales_debt_id", "sales", ["debt_id"])


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("debt_customers"):
        op.create_table(
            "debt_customers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_debt_customers")),
            sqlite_autoincrement=True,
        )

    # Legacy card/transfer sales become cash before the narrower CHECK applies
    op.execute("UPDATE sales SET payment_method = 'cash' WHERE payment_method IN ('card', 'transfer')")

    if _sales_needs_rebuild(inspector):
        _rebuild_sales(inspector)

    inspector = sa.inspect(bind)

    if not inspector.has_table("debts"):
        op.create_table(
            "debts",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sale_id", sa.Integer(), nullable=True),
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("total_amount", sa.Float(), nullable=False),
            sa.Column("amount_paid", sa.Float(), nullable=False, server_default="0"),
            sa.Column("amount_remaining", sa.Float(), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="unpaid"),
            sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.CheckConstraint("status IN ('unpaid', 'partial', 'paid')", name=op.f("ck_debts_status")),
            sa.ForeignKeyConstraint(["sale_id"], ["sales.id"], name=op.f("fk_debts_sale_id_sales")),
            sa.ForeignKeyConstraint(
                ["customer_id"], ["debt_customers.id"],
                name=op.f("fk_debts_customer_id_debt_customers"),
            ),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_debts")),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_debts_sale_id", "debts", ["sale_id"])
        op.create_index("ix_debts_customer_id", "debts", ["customer_id"])
        op.create_index("ix_debts_customer_status", "debts", ["customer_id", "status"])

    if not inspector.has_table("debt_payments"):
        op.create_table(
            "debt_payments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("debt_id", sa.Integer(), nullable=False),
            sa.Column("amount", sa.Float(), nullable=False),
            sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("payment_method", sa.String(length=16), nullable=False, server_default="cash"),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_by", sa.String(length=128), nullable=True),
            sa.CheckConstraint(
                "payment_method IN ('cash', 'card', 'transfer')",
                name=op.f("ck_debt_payments_payment_method"),
            ),
            sa.ForeignKeyConstraint(["debt_id"], ["debts.id"], name=op.f("fk_debt_payments_debt_id_debts")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_debt_payments")),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_debt_payments_debt_id", "debt_payments", ["debt_id"])


def downgrade():
    # The card/transfer distinction is gone; only the debt tables can be removed.
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table in ("debt_payments", "debts"):
        if inspector.has_table(table):
            op.drop_table(table)
