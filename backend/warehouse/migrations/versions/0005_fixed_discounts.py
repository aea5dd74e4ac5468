"""Convert percentage discounts to fixed amounts

Revision ID: 0005_fixed_discounts
Revises: 0004_debt_book
Create Date: 2025-10-05 08:15:00.000000

Early releases stored discount as a percentage. A value in (0, 100] is
read as a percentage when the surrounding numbers confirm it:
- products: the sale price is above 100, so a fixed discount that small
  would be implausible;
- sales: the stored final price matches total * (1 - d/100) within one unit.
Alembic records this revision once applied, so converted amounts are
never converted a second time.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0005_fixed_discounts"
down_revision = "0004_debt_book"
branch_labels = None
depends_on = None


def _is_percentage_sale(discount: float, total_price: float, final_price: float) -> bool:
    if not (0 < discount < 100):
        return False
    reconstructed_total = final_price / (1 - discount / 100)
    return abs(reconstructed_total - total_price) < 1


def upgrade():
    bind = op.get_bind()

    products = bind.execute(sa.text(
        "SELECT id, sale_price, discount FROM products "
        "WHERE discount > 0 AND discount <= 100 AND sale_price > 100"
    )).fetchall()
    for product_id, sale_price, discount in products:
        bind.execute(
            sa.text("UPDATE products SET discount = :discount WHERE id = :id"),
            {"discount": sale_price * discount / 100, "id": product_id},
        )

    sales = bind.execute(sa.text(
        "SELECT id, total_price, final_price, discount FROM sales "
        "WHERE discount > 0 AND discount <= 100"
    )).fetchall()
    for sale_id, total_price, final_price, discount in sales:
        if _is_percentage_sale(discount, total_price, final_price):
            bind.execute(
                sa.text("UPDATE sales SET discount = :discount WHERE id = :id"),
                {"discount": total_price * discount / 100, "id": sale_id},
            )


def downgrade():
    # Fixed amounts cannot be mapped back to the percentages they came from.
    pass
