"""Baseline schema: users, categories, products, sales, returns

Revision ID: 0001_baseline
Revises:
Create Date: 2025-06-01 09:00:00.000000

Creates the first released schema on an empty database. Databases written
by that release already have these tables; every table is created only
when absent so they pass through untouched.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


NOW = sa.text("(CURRENT_TIMESTAMP)")


def _create_index_if_missing(inspector, table, name, columns, unique=False):
    if name not in {ix["name"] for ix in inspector.get_indexes(table)}:
        op.create_index(name, table, columns, unique=unique)


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("username", sa.String(length=64), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
            sa.Column("full_name", sa.String(length=128), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint("role IN ('admin', 'user')", name=op.f("ck_users_role")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
            sqlite_autoincrement=True,
        )

    if not inspector.has_table("categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=128), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_categories")),
            sa.UniqueConstraint("name", name=op.f("uq_categories_name")),
            sqlite_autoincrement=True,
        )

    if not inspector.has_table("subcategories"):
        op.create_table(
            "subcategories",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=128), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(
                ["category_id"], ["categories.id"],
                name=op.f("fk_subcategories_category_id_categories"),
            ),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_subcategories")),
            sqlite_autoincrement=True,
        )

    if not inspector.has_table("products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(length=128), nullable=True),
            sa.Column("subcategory", sa.String(length=128), nullable=True),
            sa.Column("measurement_type", sa.String(length=16), nullable=False, server_default="quantity"),
            sa.Column("wholesale_price", sa.Float(), nullable=False, server_default="0"),
            sa.Column("sale_price", sa.Float(), nullable=False, server_default="0"),
            sa.Column("discount", sa.Float(), nullable=False, server_default="0"),
            sa.Column("quantity", sa.Integer(), nullable=True, server_default="0"),
            sa.Column("min_quantity", sa.Integer(), nullable=True, server_default="5"),
            sa.Column("weight", sa.Float(), nullable=True, server_default="0"),
            sa.Column("min_weight", sa.Float(), nullable=True, server_default="0"),
            sa.Column("weight_unit", sa.String(length=4), nullable=True, server_default="kg"),
            sa.Column("barcode", sa.String(length=64), nullable=True),
            sa.Column("image_url", sa.String(length=512), nullable=True),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="IQD"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.CheckConstraint("measurement_type IN ('quantity', 'weight')", name=op.f("ck_products_measurement_type")),
            sa.CheckConstraint("currency IN ('IQD', 'USD')", name=op.f("ck_products_currency")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_products")),
            sqlite_autoincrement=True,
        )

    if not inspector.has_table("sales"):
        op.create_table(
            "sales",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=True),
            sa.Column("weight", sa.Float(), nullable=True),
            sa.Column("weight_unit", sa.String(length=4), nullable=True),
            sa.Column("unit_price", sa.Float(), nullable=False),
            sa.Column("total_price", sa.Float(), nullable=False),
            sa.Column("discount", sa.Float(), nullable=False, server_default="0"),
            sa.Column("final_price", sa.Float(), nullable=False),
            sa.Column("customer_name", sa.String(length=255), nullable=True),
            sa.Column("customer_phone", sa.String(length=32), nullable=True),
            sa.Column("payment_method", sa.String(length=16), nullable=False, server_default="cash"),
            sa.Column("sale_date", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.CheckConstraint(
                "payment_method IN ('cash', 'card', 'transfer')",
                name=op.f("ck_sales_payment_method"),
            ),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], name=op.f("fk_sales_product_id_products")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_sales")),
            sqlite_autoincrement=True,
        )

    if not inspector.has_table("returns"):
        op.create_table(
            "returns",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sale_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("returned_quantity", sa.Integer(), nullable=True),
            sa.Column("returned_weight", sa.Float(), nullable=True),
            sa.Column("weight_unit", sa.String(length=4), nullable=True),
            sa.Column("unit_price", sa.Float(), nullable=False),
            sa.Column("total_refund", sa.Float(), nullable=False),
            sa.Column("reason", sa.Text(), nullable=True),
            sa.Column("processed_by", sa.String(length=128), nullable=True),
            sa.Column("return_date", sa.DateTime(timezone=True), nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["sale_id"], ["sales.id"], name=op.f("fk_returns_sale_id_sales")),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], name=op.f("fk_returns_product_id_products")),
            sa.PrimaryKeyConstraint("id", name=op.f("pk_returns")),
            sqlite_autoincrement=True,
        )

    inspector = sa.inspect(bind)
    _create_index_if_missing(inspector, "users", "ix_users_username", ["username"], unique=True)
    _create_index_if_missing(inspector, "subcategories", "ix_subcategories_category_id", ["category_id"])
    _create_index_if_missing(inspector, "products", "ix_products_barcode", ["barcode"])
    _create_index_if_missing(inspector, "products", "ix_products_category", ["category"])
    _create_index_if_missing(inspector, "sales", "ix_sales_product_id", ["product_id"])
    _create_index_if_missing(inspector, "sales", "ix_sales_sale_date", ["sale_date"])
    _create_index_if_missing(inspector, "returns", "ix_returns_sale_id", ["sale_id"])
    _create_index_if_missing(inspector, "returns", "ix_returns_product_id", ["product_id"])
    _create_index_if_missing(inspector, "returns", "ix_returns_return_date", ["return_date"])


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table in ("returns", "sales", "products", "subcategories", "categories", "users"):
        if inspector.has_table(table):
            op.drop_table(table)
