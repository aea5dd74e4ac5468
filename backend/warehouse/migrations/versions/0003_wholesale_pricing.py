"""Add wholesale cost price to products and sale type to sales

Revision ID: 0003_wholesale_pricing
Revises: 0002_assistant_admin
Create Date: 2025-08-02 16:45:00.000000

Sales recorded before wholesale pricing existed are backfilled as retail.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0003_wholesale_pricing"
down_revision = "0002_assistant_admin"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    product_columns = {c["name"] for c in inspector.get_columns("products")}
    if "wholesale_cost_price" not in product_columns:
        with op.batch_alter_table("products", schema=None) as batch_op:
            batch_op.add_column(
                sa.Column("wholesale_cost_price", sa.Float(), nullable=False, server_default="0")
            )

    sale_columns = {c["name"] for c in inspector.get_columns("sales")}
    if "sale_type" not in sale_columns:
        with op.batch_alter_table("sales", schema=None) as batch_op:
            batch_op.add_column(
                sa.Column("sale_type", sa.String(length=16), nullable=True, server_default="retail")
            )

    op.execute("UPDATE sales SET sale_type = 'retail' WHERE sale_type IS NULL OR sale_type = ''")


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if "sale_type" in {c["name"] for c in inspector.get_columns("sales")}:
        with op.batch_alter_table("sales", schema=None) as batch_op:
            batch_op.drop_column("sale_type")

    if "wholesale_cost_price" in {c["name"] for c in inspector.get_columns("products")}:
        with op.batch_alter_table("products", schema=None) as batch_op:
            batch_op.drop_column("wholesale_cost_price")
